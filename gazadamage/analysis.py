# gazadamage/analysis.py

from dataclasses import dataclass
from typing import Dict, Optional
import pandas as pd
import numpy as np
from gazadamage.constants import DAMAGE_CLASSES, NO_DAMAGE_THRESHOLD, ALL_REGIONS


@dataclass(frozen=True)
class DamageCounts:
    destroyed: int = 0
    severely_damaged: int = 0
    moderately_damaged: int = 0
    no_damage: int = 0

    @property
    def total(self) -> int:
        return self.destroyed + self.severely_damaged + self.moderately_damaged + self.no_damage

    def as_dict(self) -> Dict[str, int]:
        """Label -> count, in display order."""
        return {
            DAMAGE_CLASSES[1]["name"]: self.destroyed,
            DAMAGE_CLASSES[2]["name"]: self.severely_damaged,
            DAMAGE_CLASSES[3]["name"]: self.moderately_damaged,
            DAMAGE_CLASSES[4]["name"]: self.no_damage,
        }


class DamageAnalysis:
    """
    Aggregations over a filtered set of building records.
    Every record with a status code of 1, 2, 3 or anything above 3 falls in exactly
    one bucket. Missing codes (and codes <= 0) are left out of all counts.
    """

    @staticmethod
    def status_bucket(status: pd.Series) -> pd.Series:
        """Maps raw status codes to bucket codes 1-4 (NaN when unclassifiable)."""
        s = pd.to_numeric(status, errors='coerce')
        bucket = pd.Series(np.nan, index=s.index)
        for code in (1, 2, 3):
            bucket[s == code] = code
        bucket[s > NO_DAMAGE_THRESHOLD] = 4
        return bucket

    @staticmethod
    def classify_status(status: pd.Series) -> pd.Series:
        """Maps raw status codes to their label (e.g. 'Destroyed'); NaN when unclassifiable."""
        labels = {code: conf["name"] for code, conf in DAMAGE_CLASSES.items()}
        return DamageAnalysis.status_bucket(status).map(labels)

    @staticmethod
    def count_by_status(df: Optional[pd.DataFrame]) -> DamageCounts:
        if df is None or df.empty:
            return DamageCounts()
        bucket = DamageAnalysis.status_bucket(df["dmg_status"])
        return DamageCounts(
            destroyed=int((bucket == 1).sum()),
            severely_damaged=int((bucket == 2).sum()),
            moderately_damaged=int((bucket == 3).sum()),
            no_damage=int((bucket == 4).sum()),
        )

    @staticmethod
    def summary_stats(df: Optional[pd.DataFrame]) -> Optional[Dict[str, float]]:
        """
        Percentage shares of the filtered set, rounded to one decimal.
        The denominator is the number of filtered records (missing status included).

        Returns None for an empty or missing set.
        """
        if df is None or df.empty:
            return None

        total = len(df)
        counts = DamageAnalysis.count_by_status(df)
        return {
            "total_buildings": total,
            "destroyed_pct": round(counts.destroyed / total * 100, 1),
            "damaged_pct": round((counts.severely_damaged + counts.moderately_damaged) / total * 100, 1),
            "intact_pct": round(counts.no_damage / total * 100, 1),
        }

    @staticmethod
    def status_text(df: Optional[pd.DataFrame], governorate: Optional[str]) -> str:
        if df is None or df.empty:
            return "No data available for selection"
        record_count = f"{len(df):,}"
        if governorate == ALL_REGIONS:
            return f"Analyzing {record_count} records across all governorates"
        return f"Analyzing {record_count} records in {governorate}"
