from __future__ import annotations

import pytest
import requests

from restoration_subset import boundaries
from restoration_subset.errors import BoundaryDownloadError, BoundaryNotFoundError


def test_select_state(state_boundary):
    got = boundaries.select_state(state_boundary, " california ")
    assert got["STATEFP"].tolist() == ["06"]


def test_select_county_respects_parent_state(all_counties):
    got = boundaries.select_county(all_counties, "Humboldt", "32")
    assert len(got) == 1
    assert got["STATEFP"].iloc[0] == "32"


def test_unknown_county_suggests_spelling(all_counties):
    with pytest.raises(BoundaryNotFoundError) as exc:
        boundaries.select_county(all_counties, "Humbolt", "06")
    assert "Humboldt" in exc.value.suggestions


def test_load_layer_reprojects_to_nad83(all_counties, tmp_path):
    path = tmp_path / "counties.gpkg"
    all_counties.to_crs("EPSG:4326").to_file(path, driver="GPKG")
    gdf = boundaries.load_layer(path)
    assert gdf.crs.to_epsg() == 4269


def test_cached_layer_skips_download(tmp_path, monkeypatch):
    (tmp_path / boundaries.COUNTIES_GPKG).write_bytes(b"")

    def _boom(*_a, **_k):
        raise AssertionError("should not download")

    monkeypatch.setattr(boundaries, "_fetch_layer", _boom)
    assert boundaries._cached("county", boundaries.COUNTIES_GPKG, tmp_path) == tmp_path / boundaries.COUNTIES_GPKG


def test_candidate_urls_fall_back_to_cartographic():
    urls = [u for _, u in boundaries._candidate_urls("county", [2023, 2022])]
    assert urls[0].endswith("TIGER2023/COUNTY/tl_2023_us_county.zip")
    assert urls[-1].endswith("GENZ2022/shp/cb_2022_us_county_500k.zip")


def test_all_downloads_failing_raises(tmp_path, monkeypatch):
    def _offline(url, *_a, **_k):
        raise requests.ConnectionError(f"offline: {url}")

    monkeypatch.setattr(boundaries, "_download_file", _offline)
    with pytest.raises(BoundaryDownloadError):
        boundaries._fetch_layer("state", tmp_path / boundaries.STATES_GPKG, years=[2023])
    assert not (tmp_path / boundaries.STATES_GPKG).exists()
