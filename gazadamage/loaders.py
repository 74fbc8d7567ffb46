# gazadamage/loaders.py

import json
import os
import geopandas as gpd
import pandas as pd
from typing import Optional, List, Dict
from gazadamage.constants import BUILDING_COLUMNS, SUMMARY_COLUMNS, ALL_REGIONS


class DatasetLoader:
    """
    Helper to load the static dashboard files (CSV, Parquet, JSON, GeoJSON/GPKG)
    and normalize them to the expected internal schema.
    Column names are matched case-insensitively so exports from different
    tools (e.g. 'governorate' vs 'Governorate') load the same way.
    """

    @staticmethod
    def _read_table(path: str) -> pd.DataFrame:
        if not os.path.exists(path):
            raise ValueError(f"Failed to read file: {path} does not exist")
        try:
            if path.endswith('.parquet'):
                return pd.read_parquet(path)
            return pd.read_csv(path)
        except Exception as e:
            raise ValueError(f"Failed to read file: {e}")

    @staticmethod
    def _standardize_columns(df: pd.DataFrame, expected: List[str], required: List[str]) -> pd.DataFrame:
        col_map = {c.upper(): c for c in df.columns}
        missing = [c for c in required if c.upper() not in col_map]
        if missing:
            raise ValueError(f"Columns {missing} not found. Available: {list(df.columns)}")

        out = pd.DataFrame(index=df.index)
        for col in expected:
            real = col_map.get(col.upper())
            out[col] = df[real] if real is not None else pd.Series([None] * len(df), index=df.index, dtype=object)
        return out

    @staticmethod
    def _parse_dates(series: pd.Series) -> pd.Series:
        return pd.to_datetime(series, errors='coerce').dt.normalize()

    @staticmethod
    def load_buildings(path: str) -> pd.DataFrame:
        """
        Loads per-building damage records.

        Args:
            path: Path to a .csv or .parquet file with one row per surveyed building.

        Returns:
            DataFrame with Governorate, Municipality, Neighborhood, sensor_date,
            dmg_status, lat, lon columns. Missing coordinates/status stay NaN.
        """
        raw = DatasetLoader._read_table(path)
        df = DatasetLoader._standardize_columns(
            raw, BUILDING_COLUMNS, required=["Governorate", "sensor_date", "dmg_status"]
        )

        for col in ("Governorate", "Municipality", "Neighborhood"):
            df[col] = df[col].where(df[col].isna(), df[col].astype(str).str.strip())
        df["sensor_date"] = DatasetLoader._parse_dates(df["sensor_date"])
        for col in ("dmg_status", "lat", "lon"):
            df[col] = pd.to_numeric(df[col], errors='coerce')

        return df.reset_index(drop=True)

    @staticmethod
    def load_summaries(path: str) -> pd.DataFrame:
        """Loads the pre-aggregated trend summaries (one row per governorate/date/metric)."""
        raw = DatasetLoader._read_table(path)
        df = DatasetLoader._standardize_columns(
            raw, SUMMARY_COLUMNS, required=["Governorate", "sensor_date", "name", "value", "dmg_split"]
        )
        df["Governorate"] = df["Governorate"].astype(str).str.strip()
        df["sensor_date"] = DatasetLoader._parse_dates(df["sensor_date"])
        for col in ("value", "ttl_buildings_captured", "dmg_split"):
            df[col] = pd.to_numeric(df[col], errors='coerce')
        return df.reset_index(drop=True)

    @staticmethod
    def load_lookups(path: str) -> Dict[str, list]:
        """
        Loads UI lookup metadata from JSON:
        {"governorates": [...], "unique_dates": ["2023-10-14", ...]}
        """
        if not os.path.exists(path):
            raise ValueError(f"Failed to read file: {path} does not exist")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except Exception as e:
            raise ValueError(f"Failed to read file: {e}")

        governorates = [str(g).strip() for g in raw.get("governorates", []) if g is not None]
        if ALL_REGIONS in governorates:
            governorates.remove(ALL_REGIONS)
        dates = pd.to_datetime(pd.Series(raw.get("unique_dates", [])), errors='coerce').dropna()
        return {
            "governorates": [ALL_REGIONS] + governorates,
            "unique_dates": sorted(dates.dt.normalize().unique().tolist()),
        }

    @staticmethod
    def load_geometry(path: str, layer: Optional[str] = None) -> gpd.GeoDataFrame:
        """Loads a feature collection and makes sure it is in WGS84."""
        if not os.path.exists(path):
            raise ValueError(f"Failed to read file: {path} does not exist")
        try:
            if layer:
                gdf = gpd.read_file(path, layer=layer)
            else:
                gdf = gpd.read_file(path)
        except Exception as e:
            raise ValueError(f"Failed to read file: {e}")

        if gdf.crs is None:
            gdf = gdf.set_crs("EPSG:4326")
        elif gdf.crs != "EPSG:4326":
            gdf = gdf.to_crs("EPSG:4326")
        return gdf
