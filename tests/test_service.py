"""
Unit tests for gazadamage.service module.

Tests DamageDataService loading (including degraded loads) and the filter engine.
"""

import shutil
import pytest
import pandas as pd
from gazadamage.service import DamageDataService
from gazadamage.analysis import DamageAnalysis

from conftest import GOVERNORATES, SENSOR_DATES


class TestLoad:

    def test_load_populates_snapshot(self, service):
        """A complete data directory loads every dataset without errors."""
        snap = service.snapshot
        assert snap.buildings is not None
        assert snap.summaries is not None
        assert snap.sample_geometry is not None
        assert snap.lookups is not None
        assert service.load_errors == {}

    def test_missing_buildings_file_means_no_data(self, tmp_path):
        """A missing primary file is not fatal; filters report no data."""
        svc = DamageDataService(data_dir=str(tmp_path))
        svc.load()

        assert not svc.snapshot.has_buildings
        assert "buildings" in svc.load_errors
        assert svc.filter_records("Gaza", SENSOR_DATES[-1]) is None
        assert svc.governorates() == ["All"]
        assert svc.sensor_dates() == []

    def test_unreadable_buildings_file_means_no_data(self, tmp_path):
        (tmp_path / "spatial_index.csv").write_text("not,a\nvalid")
        svc = DamageDataService(data_dir=str(tmp_path))
        svc.load()
        assert not svc.snapshot.has_buildings
        assert "buildings" in svc.load_errors

    def test_lookups_derived_when_file_missing(self, tmp_path, data_dir):
        """Without ui_lookups.json the dropdown choices come from the records."""
        shutil.copy(data_dir / "spatial_index.csv", tmp_path / "spatial_index.csv")
        svc = DamageDataService(data_dir=str(tmp_path))
        svc.load()

        assert "lookups" in svc.load_errors
        govs = svc.governorates()
        assert govs[0] == "All"
        assert sorted(govs[1:]) == sorted(GOVERNORATES)
        assert govs[1:] == sorted(GOVERNORATES, key=str.lower)
        assert svc.sensor_dates() == SENSOR_DATES

    def test_secondary_files_fail_independently(self, tmp_path, data_dir):
        shutil.copy(data_dir / "spatial_index.csv", tmp_path / "spatial_index.csv")
        svc = DamageDataService(data_dir=str(tmp_path))
        svc.load()
        assert svc.snapshot.has_buildings
        assert svc.snapshot.summaries is None
        assert svc.snapshot.sample_geometry is None

    def test_queries_without_loading_raise_error(self, data_dir):
        """Calling filter_records() before load() should raise RuntimeError."""
        svc = DamageDataService(data_dir=str(data_dir))
        with pytest.raises(RuntimeError, match="No data loaded"):
            svc.filter_records("Gaza", SENSOR_DATES[0])

    def test_progress_callback_reaches_completion(self, data_dir):
        calls = []
        svc = DamageDataService(data_dir=str(data_dir))
        svc.load(progress_callback=lambda p, msg: calls.append(p))
        assert calls[-1] == 1.0
        assert calls == sorted(calls)

    def test_default_selection(self, service):
        """Defaults are the Gaza governorate and the most recent sensor date."""
        selection = service.default_selection()
        assert selection == {"governorate": "Gaza", "sensor_date": "2024-07-06"}


class TestFilterRecords:

    def test_region_and_date_match(self, service):
        df = service.filter_records("Rafah", "2024-02-29")
        assert len(df) > 0
        assert (df["Governorate"] == "Rafah").all()
        assert (df["sensor_date"] == pd.Timestamp("2024-02-29")).all()

    def test_all_is_union_of_regions(self, service):
        """Filtering by "All" returns exactly the per-region subsets combined."""
        for date in SENSOR_DATES:
            all_df = service.filter_records("All", date)
            parts = [service.filter_records(gov, date) for gov in GOVERNORATES]
            assert len(all_df) == sum(len(p) for p in parts)
            union_index = pd.Index([]).append([p.index for p in parts])
            assert union_index.is_unique
            assert set(union_index) == set(all_df.index)

    def test_exact_date_equality(self, service):
        """No off-by-one-day inclusion: the day before/after matches nothing."""
        assert len(service.filter_records("All", "2024-02-28")) == 0
        assert len(service.filter_records("All", "2024-03-01")) == 0
        assert len(service.filter_records("All", "2024-02-29")) > 0

    def test_accepts_date_like_values(self, service):
        as_str = service.filter_records("Gaza", "2024-07-06")
        as_ts = service.filter_records("Gaza", pd.Timestamp("2024-07-06 13:00"))
        as_date = service.filter_records("Gaza", pd.Timestamp("2024-07-06").date())
        assert len(as_str) == len(as_ts) == len(as_date)

    def test_missing_selection_is_not_ready(self, service):
        assert service.filter_records(None, "2024-07-06") is None
        assert service.filter_records("Gaza", None) is None
        assert service.filter_records("", "2024-07-06") is None

    def test_idempotent_and_side_effect_free(self, service):
        before = service.snapshot.buildings.copy()
        first = service.filter_records("North Gaza", "2023-10-15")
        first["dmg_status"] = 99
        second = service.filter_records("North Gaza", "2023-10-15")

        assert not (second["dmg_status"] == 99).any()
        pd.testing.assert_frame_equal(service.snapshot.buildings, before)

    def test_unknown_region_is_empty(self, service):
        assert service.filter_records("Atlantis", "2024-07-06").empty


class TestScenarios:

    def test_gaza_at_latest_date(self, service):
        """Gaza at the latest date has records and the four counts sum to the non-missing ones."""
        latest = service.sensor_dates()[-1]
        df = service.filter_records("Gaza", latest)
        counts = DamageAnalysis.count_by_status(df)

        assert len(df) > 0
        assert "Analyzing" in DamageAnalysis.status_text(df, "Gaza")
        assert counts.total == df["dmg_status"].notna().sum()
        assert counts.total <= len(df)

    def test_all_count_equals_sum_of_regions(self, service):
        for date in SENSOR_DATES:
            total = len(service.filter_records("All", date))
            assert total == sum(len(service.filter_records(g, date)) for g in GOVERNORATES)
