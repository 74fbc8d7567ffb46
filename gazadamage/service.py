# gazadamage/service.py

import os
import pandas as pd
import geopandas as gpd
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from unidecode import unidecode
from gazadamage.loaders import DatasetLoader
from gazadamage.constants import DATA_FILES, ALL_REGIONS, DEFAULT_DATA_DIR, DEFAULT_GOVERNORATE


@dataclass(frozen=True)
class DataSnapshot:
    """
    Read-only view of everything loaded at startup.
    Built once and shared by all sessions; consumers only ever get filtered copies.
    """
    buildings: Optional[pd.DataFrame] = None
    summaries: Optional[pd.DataFrame] = None
    sample_geometry: Optional[gpd.GeoDataFrame] = None
    lookups: Optional[Dict[str, list]] = None
    load_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def has_buildings(self) -> bool:
        return self.buildings is not None


class DamageDataService:
    """
    Core service for the damage assessment dashboard.
    Loads the static data files once and answers filter queries against them.
    """

    def __init__(self, data_dir: str = DEFAULT_DATA_DIR):
        self.data_dir = data_dir
        self.snapshot: DataSnapshot = DataSnapshot()
        self._loaded = False

    def _resolve(self, key: str) -> Optional[str]:
        """First existing candidate file for a dataset key, or the first candidate if none exist."""
        candidates = [os.path.join(self.data_dir, name) for name in DATA_FILES[key]]
        for path in candidates:
            if os.path.exists(path):
                return path
        return candidates[0]

    def load(self, progress_callback=None) -> DataSnapshot:
        """
        Loads all static files into a new snapshot.
        A missing or unreadable file is recorded in `load_errors` and leaves its
        slot empty; it never raises.

        Args:
            progress_callback: Optional callable(float, str) to report progress (0.0-1.0, message)
        """
        errors: Dict[str, str] = {}

        def _try(key: str, reader):
            path = self._resolve(key)
            try:
                return reader(path)
            except Exception as e:
                errors[key] = str(e)
                print(f"[DataService] Could not load {key} from {path}: {e}")
                return None

        if progress_callback: progress_callback(0.1, "Loading building records")
        buildings = _try("buildings", DatasetLoader.load_buildings)

        if progress_callback: progress_callback(0.5, "Loading lookups")
        lookups = _try("lookups", DatasetLoader.load_lookups)
        if lookups is None and buildings is not None:
            lookups = self.derive_lookups(buildings)

        if progress_callback: progress_callback(0.7, "Loading damage summaries")
        summaries = _try("summaries", DatasetLoader.load_summaries)

        if progress_callback: progress_callback(0.9, "Loading sample geometry")
        sample_geometry = _try("sample_geometry", DatasetLoader.load_geometry)

        self.snapshot = DataSnapshot(
            buildings=buildings,
            summaries=summaries,
            sample_geometry=sample_geometry,
            lookups=lookups,
            load_errors=errors,
        )
        self._loaded = True

        if buildings is not None:
            print(f"[DataService] Loaded {len(buildings):,} building records from {self.data_dir}")
        if progress_callback: progress_callback(1.0, "Done")
        return self.snapshot

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            raise RuntimeError("No data loaded. Call load() first.")

    @staticmethod
    def _norm(s: Optional[str]) -> str:
        return unidecode("" if s is None or (isinstance(s, float) and pd.isna(s)) else str(s)).strip()

    @staticmethod
    def derive_lookups(buildings: pd.DataFrame) -> Dict[str, list]:
        """Builds the dropdown choices from the records themselves."""
        govs = buildings["Governorate"].dropna().astype(str).unique().tolist()
        govs = sorted(govs, key=lambda x: DamageDataService._norm(x).lower())
        dates = buildings["sensor_date"].dropna().unique().tolist()
        return {
            "governorates": [ALL_REGIONS] + [g for g in govs if g != ALL_REGIONS],
            "unique_dates": sorted(pd.Timestamp(d) for d in dates),
        }

    @property
    def load_errors(self) -> Dict[str, str]:
        return self.snapshot.load_errors

    def governorates(self) -> List[str]:
        self._ensure_loaded()
        lookups = self.snapshot.lookups
        if not lookups:
            return [ALL_REGIONS]
        return list(lookups["governorates"])

    def sensor_dates(self) -> List[str]:
        """Known sensor dates as ISO strings, ascending."""
        self._ensure_loaded()
        lookups = self.snapshot.lookups
        if not lookups:
            return []
        return [pd.Timestamp(d).strftime("%Y-%m-%d") for d in lookups["unique_dates"]]

    def default_selection(self) -> Dict[str, Any]:
        """Initial dropdown values: the default governorate when available and the latest date."""
        govs = self.governorates()
        dates = self.sensor_dates()
        gov = DEFAULT_GOVERNORATE if DEFAULT_GOVERNORATE in govs else govs[0]
        return {"governorate": gov, "sensor_date": dates[-1] if dates else None}

    def filter_records(self, governorate: Optional[str], sensor_date: Any) -> Optional[pd.DataFrame]:
        """
        Buildings matching the selected governorate (all of them for "All") observed
        exactly on the selected sensor date.

        Returns None when a selection is missing or no building data is loaded.
        """
        self._ensure_loaded()
        if not governorate or sensor_date is None or sensor_date == "":
            return None
        buildings = self.snapshot.buildings
        if buildings is None:
            return None

        try:
            selected_date = pd.Timestamp(sensor_date).normalize()
        except (ValueError, TypeError):
            return None

        mask = buildings["sensor_date"] == selected_date
        if governorate != ALL_REGIONS:
            mask &= buildings["Governorate"] == governorate
        return buildings[mask].copy()
