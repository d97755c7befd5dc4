"""Degree/minute/second coordinate fields → decimal degrees → point geometry.

Each record carries four fields per axis (degrees, minutes, seconds,
hemisphere). They are first written out as one canonical sexagesimal string
per axis, e.g. ``37d49'12" N``, and that string is parsed back into signed
decimal degrees. South and west are negative.

Outcomes per record (``coord_status``):

* ``ok``        – all fields present and valid; geometry is a Point.
* ``missing``   – at least one field is NULL/NA; no geometry. Not an error.
* ``malformed`` – fields present but out of range or unparseable; no geometry,
  reason kept in ``coord_issue`` and logged as a warning.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

import geopandas as gpd
import numpy as np
import pandas as pd
from loguru import logger
from shapely.geometry import Point

from .config import CRS_GEOGRAPHIC, Schema
from .errors import MalformedCoordinateError

STATUS_OK = "ok"
STATUS_MISSING = "missing"
STATUS_MALFORMED = "malformed"

HEMISPHERES = {"lat": ("N", "S"), "lon": ("E", "W")}
MAX_DEGREES = {"lat": 90.0, "lon": 180.0}

_SEXAGESIMAL_RE = re.compile(
    r"""^\s*(?P<deg>\d+)d(?P<min>\d+)'(?P<sec>\d+(?:\.\d+)?)"\s*(?P<hem>[A-Za-z]+)\s*$"""
)


@dataclass(frozen=True)
class CoordinateResult:
    lat: Optional[float]
    lon: Optional[float]
    status: str
    reason: Optional[str] = None

    @property
    def has_point(self) -> bool:
        return self.status == STATUS_OK


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _is_missing(val: object) -> bool:
    if val is None:
        return True
    if isinstance(val, str):
        return not val.strip()
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False


def _fmt_number(val: object) -> str:
    """37 / 37.0 / '37' → '37'; 12.5 → '12.5'; 1e-05 → '0.00001'; anything non-numeric passes through."""
    text = str(val).strip()
    try:
        num = float(text)
    except ValueError:
        return text
    if num.is_integer():
        return str(int(num))
    return np.format_float_positional(num, trim="-")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def format_sexagesimal(degrees: object, minutes: object, seconds: object, hemisphere: object) -> str:
    """Build the canonical ``{d}d{m}'{s}" {h}`` string for one axis."""
    hem = str(hemisphere).strip().upper()
    return f"{_fmt_number(degrees)}d{_fmt_number(minutes)}'{_fmt_number(seconds)}\" {hem}"


def parse_sexagesimal(text: str, axis: str) -> float:
    """Parse a canonical sexagesimal string into signed decimal degrees.

    Raises :class:`MalformedCoordinateError` for anything out of range.
    """
    if axis not in HEMISPHERES:
        raise ValueError(f"axis must be 'lat' or 'lon', got {axis!r}")

    m = _SEXAGESIMAL_RE.match(text)
    if not m:
        raise MalformedCoordinateError(f"unparseable {axis} {text!r}")

    deg = int(m.group("deg"))
    minutes = int(m.group("min"))
    sec = float(m.group("sec"))
    hem = m.group("hem").upper()

    if hem not in HEMISPHERES[axis]:
        raise MalformedCoordinateError(f"{axis} hemisphere {hem!r} not in {HEMISPHERES[axis]}")
    if minutes > 59:
        raise MalformedCoordinateError(f"{axis} minutes {minutes} outside [0, 59]")
    if not 0.0 <= sec < 60.0:
        raise MalformedCoordinateError(f"{axis} seconds {sec} outside [0, 60)")

    value = deg + minutes / 60.0 + sec / 3600.0
    if value > MAX_DEGREES[axis]:
        raise MalformedCoordinateError(f"{axis} {value:.6f} exceeds {MAX_DEGREES[axis]:.0f} degrees")

    if hem in ("S", "W"):
        value = -value
    return value


def normalize_record(row: pd.Series | dict, schema: Schema = Schema()) -> CoordinateResult:
    """Convert one record's coordinate fields into a :class:`CoordinateResult`."""
    fields = schema.coordinate_fields
    if any(_is_missing(row.get(f)) for f in fields):
        return CoordinateResult(None, None, STATUS_MISSING)

    lat_txt = format_sexagesimal(*(row[f] for f in schema.lat_fields))
    lon_txt = format_sexagesimal(*(row[f] for f in schema.lon_fields))
    try:
        lat = parse_sexagesimal(lat_txt, "lat")
        lon = parse_sexagesimal(lon_txt, "lon")
    except MalformedCoordinateError as exc:
        return CoordinateResult(None, None, STATUS_MALFORMED, str(exc))
    return CoordinateResult(lat, lon, STATUS_OK)


def attach_geometry(frame: pd.DataFrame, crs: str = CRS_GEOGRAPHIC, schema: Schema = Schema()) -> gpd.GeoDataFrame:
    """Return *frame* as a GeoDataFrame with decimal coordinates and point geometry.

    Adds ``lat_dd``, ``lon_dd``, ``coord_status`` and ``coord_issue``. Rows
    whose coordinates are missing or malformed keep all their attributes and
    get a ``None`` geometry.
    """
    missing_cols = [c for c in schema.coordinate_fields if c not in frame.columns]
    if missing_cols:
        logger.warning(f"Coordinate column(s) {missing_cols} absent – no geometry will be built")

    results = [normalize_record(row, schema) for _, row in frame.iterrows()]

    out = frame.copy()
    out["lat_dd"] = [r.lat if r.lat is not None else np.nan for r in results]
    out["lon_dd"] = [r.lon if r.lon is not None else np.nan for r in results]
    out["coord_status"] = [r.status for r in results]
    out["coord_issue"] = [r.reason for r in results]

    geoms = [Point(r.lon, r.lat) if r.has_point else None for r in results]
    gdf = gpd.GeoDataFrame(out, geometry=gpd.GeoSeries(geoms, index=out.index, crs=crs), crs=crs)

    counts = gdf["coord_status"].value_counts()
    logger.info(
        f"Coordinates: {counts.get(STATUS_OK, 0)} ok, "
        f"{counts.get(STATUS_MISSING, 0)} missing, {counts.get(STATUS_MALFORMED, 0)} malformed"
    )
    for key, reason in coordinate_issues(gdf, schema.key).itertuples(index=False):
        logger.warning(f"Malformed coordinates for {schema.key}={key}: {reason}")
    return gdf


def coordinate_issues(frame: pd.DataFrame, key: str = "project_id") -> pd.DataFrame:
    """Return ``(key, coord_issue)`` for every malformed record, one row per id."""
    if "coord_status" not in frame.columns:
        return pd.DataFrame(columns=[key, "coord_issue"])
    bad = frame.loc[frame["coord_status"] == STATUS_MALFORMED, [key, "coord_issue"]]
    return bad.drop_duplicates(subset=[key]).reset_index(drop=True)
