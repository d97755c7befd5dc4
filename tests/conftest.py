from __future__ import annotations

import sqlite3
from pathlib import Path

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from restoration_subset.database import ProjectDatabase

# Stand-in for Humboldt County: everything between 124.5W–123.5W, 40N–41N
COUNTY_BOX = box(-124.5, 40.0, -123.5, 41.0)
STATE_BOX = box(-125.0, 32.0, -114.0, 42.0)


def _tables() -> dict[str, pd.DataFrame]:
    projects = pd.DataFrame(
        {
            "project_id": [101, 102, 103, 104, 105, 106],
            "project_name": [
                "Mad River riparian planting",
                "Trinity tributary culvert",
                "Lagunitas Creek coho habitat",
                "Humboldt County fish passage",
                "Sonoma Creek bank stabilisation",
                "Quinn River fencing",
            ],
            "county_name": ["Humboldt", "Trinity", "Marin", "humboldt county", "Sonoma", "Humboldt"],
        }
    )
    lookup = pd.DataFrame(
        {
            "project_id": [101, 102, 103, 104, 105, 106],
            "state_fips": ["06", "06", "06", "06", "06", "32"],
        }
    )
    location = pd.DataFrame(
        {
            "project_id": [101, 102, 103, 104, 106],
            # 101, 102 inside the county box; 103 near San Francisco Bay
            "lat_deg": [40, 40, 38, None, 40],
            "lat_min": [30, 45, 0, None, 30],
            "lat_sec": [0.0, 30.5, 0.0, None, 0.0],
            "lat_dir": ["N", "N", "N", None, "N"],
            "lon_deg": [124, 123, 122, None, 124],
            "lon_min": [0, 45, 0, None, 0],
            "lon_sec": [0.0, 0.0, 0.0, None, 0.0],
            "lon_dir": ["W", "W", "W", None, "W"],
        }
    )
    identification = pd.DataFrame(
        {
            "project_id": [101, 102, 103, 104, 105, 106],
            "id_source": ["CDFW", "USFS", "NPS", "CDFW", "RCD", "NDOW"],
        }
    )
    activities = pd.DataFrame(
        {
            "project_id": [101, 101, 102],
            "activity": ["riparian planting", "bank stabilisation", "fish passage"],
            "funding_usd": [12000.0, 8000.0, 45000.0],
        }
    )
    species = pd.DataFrame(
        {
            "project_id": [104, 104],
            "species": ["coho salmon", "steelhead"],
        }
    )
    return {
        "projects": projects,
        "project_state": lookup,
        "project_location": location,
        "project_identification": identification,
        "project_activities": activities,
        "project_species": species,
    }


def _populate(conn: sqlite3.Connection) -> None:
    for name, df in _tables().items():
        df.to_sql(name, conn, index=False)
    conn.commit()


@pytest.fixture()
def memory_db():
    conn = sqlite3.connect(":memory:")
    _populate(conn)
    db = ProjectDatabase.from_connection(conn)
    yield db
    conn.close()


@pytest.fixture()
def db_file(tmp_path: Path) -> Path:
    path = tmp_path / "projects.sqlite"
    conn = sqlite3.connect(path)
    try:
        _populate(conn)
    finally:
        conn.close()
    return path


@pytest.fixture()
def county_boundary() -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(
        {"NAME": ["Humboldt"], "STATEFP": ["06"]}, geometry=[COUNTY_BOX], crs="EPSG:4269"
    )


@pytest.fixture()
def state_boundary() -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame({"NAME": ["California"], "STATEFP": ["06"]}, geometry=[STATE_BOX], crs="EPSG:4269")


@pytest.fixture()
def all_counties() -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(
        {
            "NAME": ["Humboldt", "Trinity", "Humboldt", "Humboldt"],
            "STATEFP": ["06", "06", "32", "19"],
        },
        geometry=[COUNTY_BOX, box(-123.5, 40.0, -122.5, 41.0), box(-119, 40, -117, 42), box(-94.5, 42.5, -94, 43)],
        crs="EPSG:4269",
    )
