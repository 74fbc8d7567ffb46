# gazadamage/exporter.py
"""
Gaza Damage Export Module
Handles export of the pre-aggregated damage summaries to Excel and of the
sample geometry collection to GeoJSON.
"""

import os
import pandas as pd
import geopandas as gpd
from datetime import date
from typing import Optional
from gazadamage.constants import EXPORT_CONFIG


class DamageExporter:
    """
    Handles export of dashboard datasets to downloadable files.
    Exports always read the full static datasets, never the current filter selection.
    """

    @staticmethod
    def excel_filename(today: Optional[date] = None) -> str:
        today = today or date.today()
        return f"{EXPORT_CONFIG['excel']['filename_prefix']}{today.isoformat()}.xlsx"

    @staticmethod
    def geojson_filename(today: Optional[date] = None) -> str:
        today = today or date.today()
        return f"{EXPORT_CONFIG['geojson']['filename_prefix']}{today.isoformat()}.geojson"

    @staticmethod
    def _excel_ready(df: pd.DataFrame) -> pd.DataFrame:
        """Excel has no date-only type; write sensor dates as plain dates."""
        out = df.copy()
        if "sensor_date" in out.columns and pd.api.types.is_datetime64_any_dtype(out["sensor_date"]):
            out["sensor_date"] = out["sensor_date"].dt.date
        return out

    @staticmethod
    def export_excel_report(output_path: str, summaries: pd.DataFrame) -> str:
        """
        Writes the damage summaries workbook.

        Sheets:
        1. Damage_Summaries - every trend summary row (all governorates, dates and metrics)
        """
        if summaries is None:
            raise ValueError("No damage summaries available to export.")

        data_to_export = {
            EXPORT_CONFIG["excel"]["sheet_name_summaries"]: DamageExporter._excel_ready(summaries),
        }

        with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
            for sheet_name, df in data_to_export.items():
                df.to_excel(writer, sheet_name=sheet_name, index=False)

        return output_path

    @staticmethod
    def export_raw_summaries(output_path: str, summaries: pd.DataFrame) -> str:
        """Fallback export: the summaries as-is on the default sheet."""
        summaries.to_excel(output_path, index=False, engine='openpyxl')
        return output_path

    @staticmethod
    def export_sample_geometry(output_path: str, sample_geometry: gpd.GeoDataFrame) -> str:
        """Writes the sample geometry collection as a GeoJSON FeatureCollection."""
        if sample_geometry is None:
            raise ValueError("No sample geometry available to export.")

        # The GeoJSON driver refuses to overwrite an existing file
        if os.path.exists(output_path):
            os.remove(output_path)
        sample_geometry.to_file(output_path, driver=EXPORT_CONFIG["geojson"]["driver"])
        return output_path
