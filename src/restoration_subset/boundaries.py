"""Download, cache and select the state / county reference boundaries.

Boundaries come from the Census TIGER/Line service. The national state and
county files are fetched once, cached as GeoPackages under
``data/reference/`` and then filtered by name. Every layer handed to the
pipeline is reprojected to ``config.CRS_GEOGRAPHIC`` (EPSG:4269).

Run with:
    python -m restoration_subset.boundaries
"""
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Iterable, Tuple
from zipfile import ZipFile

import geopandas as gpd
import requests
from loguru import logger

from . import config
from .errors import BoundaryDownloadError, BoundaryNotFoundError
from .place_patterns import closest_names

STATES_GPKG = "tiger_us_states.gpkg"
COUNTIES_GPKG = "tiger_us_counties.gpkg"

# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def _download_file(url: str, out_path: Path, chunk: int = 1 << 20, *, verify_ssl: bool = True) -> None:
    """Stream *url* to *out_path*."""
    logger.info(f"Downloading {url} → {out_path.name} …")
    # Separate connect/read timeouts: 30 s connect, unlimited read
    with requests.get(url, stream=True, timeout=(30, None), verify=verify_ssl) as r:
        r.raise_for_status()
        with out_path.open("wb") as f:
            for part in r.iter_content(chunk):
                f.write(part)
    size_mb = out_path.stat().st_size / 1_048_576
    logger.success(f"Saved {size_mb:.1f} MB → {out_path.name}")


def _extract_zip(zip_path: Path, to_dir: Path) -> None:
    logger.info(f"Extracting {zip_path.name} …")
    with ZipFile(zip_path) as z:
        z.extractall(to_dir)


def _candidate_urls(layer: str, years: Iterable[int]) -> Iterable[Tuple[int, str]]:
    """TIGER/Line URLs newest first, then the generalised cartographic files."""
    years = list(years)
    for year in years:
        yield year, f"https://www2.census.gov/geo/tiger/TIGER{year}/{layer.upper()}/tl_{year}_us_{layer}.zip"
    for year in years:
        yield year, f"https://www2.census.gov/geo/tiger/GENZ{year}/shp/cb_{year}_us_{layer}_500k.zip"


def _fetch_layer(layer: str, out: Path, years: Iterable[int] = config.TIGER_YEARS) -> Path:
    for year, url in _candidate_urls(layer, years):
        try:
            with tempfile.TemporaryDirectory() as tmp:
                tmpdir = Path(tmp)
                zfile = tmpdir / f"{layer}.zip"
                _download_file(url, zfile)
                _extract_zip(zfile, tmpdir)
                shp = next(tmpdir.glob("*.shp"))
                gdf = gpd.read_file(shp)
                out.parent.mkdir(parents=True, exist_ok=True)
                gdf.to_file(out, driver="GPKG")
                logger.success(f"TIGER {layer} {year} ({len(gdf)} features) → {out.name}")
                return out
        except Exception as exc:  # noqa: BLE001
            logger.warning(f"{layer} {year} failed ({url}): {exc}")
            continue
    raise BoundaryDownloadError(f"All download strategies for TIGER layer {layer!r} failed.")


def _cached(layer: str, filename: str, reference_dir: Path) -> Path:
    out = reference_dir / filename
    if out.exists():
        logger.info(f"{filename} already present – skipping download.")
        return out
    return _fetch_layer(layer, out)


# ---------------------------------------------------------------------------
# Loading / selection
# ---------------------------------------------------------------------------

def load_layer(path: Path, crs: str = config.CRS_GEOGRAPHIC) -> gpd.GeoDataFrame:
    gdf = gpd.read_file(path)
    if gdf.crs is None:
        raise ValueError(f"{path.name} has no CRS")
    if gdf.crs != crs:
        logger.debug(f"Reprojecting {path.name} from {gdf.crs} to {crs}")
        gdf = gdf.to_crs(crs)
    return gdf


def select_state(states: gpd.GeoDataFrame, name: str) -> gpd.GeoDataFrame:
    """Rows of *states* whose NAME equals *name* (case-insensitive)."""
    names = states["NAME"].astype(str).str.strip()
    hit = states[names.str.lower() == name.strip().lower()]
    if hit.empty:
        raise BoundaryNotFoundError(name, closest_names(name, names.tolist()))
    return hit.reset_index(drop=True)


def select_county(counties: gpd.GeoDataFrame, name: str, state_fips: str) -> gpd.GeoDataFrame:
    """The county called *name* inside the state with FIPS *state_fips*."""
    in_state = counties[counties["STATEFP"].astype(str) == str(state_fips)]
    names = in_state["NAME"].astype(str).str.strip()
    hit = in_state[names.str.lower() == name.strip().lower()]
    if hit.empty:
        raise BoundaryNotFoundError(f"{name} (STATEFP {state_fips})", closest_names(name, names.tolist()))
    return hit.reset_index(drop=True)


def state_boundary(
    name: str, crs: str = config.CRS_GEOGRAPHIC, reference_dir: Path = config.REFERENCE_DIR
) -> gpd.GeoDataFrame:
    """Download (or reuse) the national state file and return *name*'s polygon."""
    return select_state(load_layer(_cached("state", STATES_GPKG, reference_dir), crs), name)


def county_layer(crs: str = config.CRS_GEOGRAPHIC, reference_dir: Path = config.REFERENCE_DIR) -> gpd.GeoDataFrame:
    """Every US county; also used for the place-name collision check."""
    return load_layer(_cached("county", COUNTIES_GPKG, reference_dir), crs)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

def main() -> None:
    """Fetch both reference layers, skipping those already cached."""
    config.ensure_dirs()
    _cached("state", STATES_GPKG, config.REFERENCE_DIR)
    _cached("county", COUNTIES_GPKG, config.REFERENCE_DIR)
    logger.success("All reference layers available ✓")


if __name__ == "__main__":
    main()
