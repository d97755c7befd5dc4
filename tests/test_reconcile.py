from __future__ import annotations

import geopandas as gpd
from shapely.geometry import Point, box

from restoration_subset.reconcile import reconcile, spatial_candidates

COUNTY = box(-124.5, 40.0, -123.5, 41.0)


def _gdf(rows):
    return gpd.GeoDataFrame(
        {
            "project_id": [r[0] for r in rows],
            "county_name": [r[1] for r in rows],
            "project_name": [r[2] for r in rows],
        },
        geometry=[r[3] for r in rows],
        crs="EPSG:4269",
    )


def test_geometry_bearing_copy_wins():
    regional = _gdf(
        [
            (1, "Humboldt", "a", None),  # text-only copy listed first
            (1, "Humboldt", "a", Point(-124.0, 40.5)),
            (2, "Sonoma", "b", None),
        ]
    )
    res = reconcile(regional, COUNTY, "Humboldt")

    assert res.records["project_id"].tolist() == [1]
    row = res.records.iloc[0]
    assert row.geometry is not None
    assert row["match_source"] == "both"


def test_no_duplicate_ids_and_sources():
    regional = _gdf(
        [
            (3, "Trinity", "c", Point(-123.9, 40.9)),
            (3, "Trinity", "c", Point(-123.9, 40.9)),
            (4, "Humboldt; Del Norte", "d", None),
            (5, "Marin", "e", Point(-122.5, 38.0)),
            (6, "Humboldt", "f", Point(-122.5, 38.0)),
        ]
    )
    res = reconcile(regional, COUNTY, "Humboldt")
    ids = res.records["project_id"].tolist()

    assert ids == sorted(set(ids)) == [3, 4, 6]
    src = dict(zip(res.records["project_id"], res.records["match_source"]))
    assert src == {3: "spatial", 4: "text", 6: "text"}
    # text-matched but geographically elsewhere keeps its own point
    assert res.records.set_index("project_id").loc[6].geometry.equals(Point(-122.5, 38.0))
    assert res.counts()["total"] == 3


def test_boundary_point_is_not_within():
    regional = _gdf([(7, "x", "y", Point(-124.5, 40.5)), (8, "x", "y", Point(-124.0, 40.5))])
    got = spatial_candidates(regional, COUNTY)
    assert got["project_id"].tolist() == [8]


def test_zero_hits_is_valid_empty_result():
    regional = _gdf([(9, "Sonoma", "z", Point(-122.5, 38.3))])
    res = reconcile(regional, COUNTY, "Humboldt")
    assert res.records.empty
    assert res.text_ids == set() and res.spatial_ids == set()


def test_boundary_reprojected_to_records_crs():
    boundary = gpd.GeoDataFrame(geometry=[COUNTY], crs="EPSG:4269").to_crs("EPSG:3857")
    regional = _gdf([(10, "x", "y", Point(-124.0, 40.5))])
    res = reconcile(regional, boundary, "Humboldt")
    assert res.records["project_id"].tolist() == [10]
