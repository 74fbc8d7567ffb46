"""
Pytest configuration and shared fixtures for the damage dashboard tests.

Builds a small synthetic copy of the static data files (buildings, lookups,
damage summaries, sample geometry) in a temporary data directory.
"""

import pytest
import json
import sys
import numpy as np
import pandas as pd
from pathlib import Path


# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Add project root to sys.path for gazadamage imports
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


GOVERNORATES = ["Gaza", "North Gaza", "Khan Younis", "Rafah"]
SENSOR_DATES = ["2023-10-15", "2024-02-29", "2024-07-06"]

# Destroyed share per governorate across SENSOR_DATES (distinct shapes per region)
DESTROYED_SHARES = {
    "Gaza": [0.10, 0.30, 0.50],
    "North Gaza": [0.50, 0.30, 0.10],
    "Khan Younis": [0.10, 0.40, 0.45],
    "Rafah": [0.10, 0.12, 0.50],
}


def _make_buildings(rows_per_group: int = 60, seed: int = 7) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    statuses = [1, 2, 3, 4, 5, 6, np.nan]
    frames = []
    for gov in GOVERNORATES:
        for date in SENSOR_DATES:
            n = rows_per_group
            lat = rng.uniform(31.22, 31.59, n)
            lon = rng.uniform(34.22, 34.56, n)
            lat[::10] = np.nan  # every 10th record lacks coordinates
            frames.append(pd.DataFrame({
                "Governorate": gov,
                "Municipality": f"{gov} Municipality",
                "Neighborhood": [f"{gov} Nbhd {k % 3}" for k in range(n)],
                "sensor_date": date,
                "dmg_status": rng.choice(statuses, n),
                "lat": lat,
                "lon": lon,
            }))
    return pd.concat(frames, ignore_index=True)


def _make_summaries() -> pd.DataFrame:
    rows = []
    for gov, shares in DESTROYED_SHARES.items():
        for date, share in zip(SENSOR_DATES, shares):
            captured = 1000
            rows.append({"Governorate": gov, "sensor_date": date, "name": "ttl_destroyed",
                         "value": int(captured * share), "ttl_buildings_captured": captured, "dmg_split": share})
            rows.append({"Governorate": gov, "sensor_date": date, "name": "ttl_damaged",
                         "value": int(captured * 0.2), "ttl_buildings_captured": captured, "dmg_split": share})
    return pd.DataFrame(rows)


def _make_sample_geometry() -> dict:
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"name": "Block A", "dmg_status": 1},
             "geometry": {"type": "Polygon", "coordinates": [[[34.45, 31.50], [34.46, 31.50], [34.46, 31.51], [34.45, 31.51], [34.45, 31.50]]]}},
            {"type": "Feature", "properties": {"name": "Block B", "dmg_status": 3},
             "geometry": {"type": "Polygon", "coordinates": [[[34.30, 31.30], [34.31, 31.30], [34.31, 31.31], [34.30, 31.31], [34.30, 31.30]]]}},
            {"type": "Feature", "properties": {"name": "Building C", "dmg_status": 6},
             "geometry": {"type": "Point", "coordinates": [34.40, 31.40]}},
        ],
    }


@pytest.fixture(scope="session")
def project_root():
    """Returns the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def buildings_frame():
    """Raw synthetic building records as written to spatial_index.csv."""
    return _make_buildings()


@pytest.fixture(scope="session")
def make_buildings():
    """Factory for larger synthetic building sets."""
    return _make_buildings


@pytest.fixture(scope="session")
def summaries_frame():
    return _make_summaries()


@pytest.fixture(scope="session")
def data_dir(tmp_path_factory, buildings_frame, summaries_frame):
    """A complete data directory with all four static files."""
    path = tmp_path_factory.mktemp("data")
    buildings_frame.to_csv(path / "spatial_index.csv", index=False)
    summaries_frame.to_csv(path / "damage_summaries.csv", index=False)
    with open(path / "ui_lookups.json", "w", encoding="utf-8") as f:
        json.dump({"governorates": GOVERNORATES, "unique_dates": SENSOR_DATES}, f)
    with open(path / "sample_geometry.geojson", "w", encoding="utf-8") as f:
        json.dump(_make_sample_geometry(), f)
    return path


@pytest.fixture
def service(data_dir):
    """A service loaded from the complete synthetic data directory."""
    from gazadamage.service import DamageDataService
    svc = DamageDataService(data_dir=str(data_dir))
    svc.load()
    return svc
