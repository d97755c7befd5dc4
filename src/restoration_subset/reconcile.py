"""Combine text-pattern and spatial-containment matches for one county.

1. Text candidates: every regional row whose county field or project name
   matches one of the place patterns (rows with or without geometry).
2. Spatial candidates: rows with a point strictly *within* the county
   polygon. A point lying on the boundary line is not within.
3. Union: spatial rows first, then text rows. Stable sort on
   (id ascending, geometry present first, original position) and keep the
   first row per id.

Tie-break rule: when two rows share id and geometry presence, the one that
came first in the concatenation wins, i.e. a spatial row beats a text row
and, within one source, the earlier row of the joined table wins.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Set

import geopandas as gpd
import pandas as pd
from loguru import logger
from shapely.geometry.base import BaseGeometry

from .place_patterns import PATTERN_VERSION, matched_patterns

SOURCE_SPATIAL = "spatial"
SOURCE_TEXT = "text"
SOURCE_BOTH = "both"


@dataclass
class ReconcileResult:
    place: str
    records: gpd.GeoDataFrame
    text_ids: Set[object]
    spatial_ids: Set[object]
    collisions: List[str] = field(default_factory=list)
    pattern_version: str = PATTERN_VERSION
    key: str = "project_id"

    @property
    def ids(self) -> List[object]:
        return self.records[self.key].tolist()

    def counts(self) -> dict[str, int]:
        src = self.records["match_source"].value_counts() if not self.records.empty else pd.Series(dtype=int)
        return {
            "total": len(self.records),
            SOURCE_SPATIAL: int(src.get(SOURCE_SPATIAL, 0)),
            SOURCE_TEXT: int(src.get(SOURCE_TEXT, 0)),
            SOURCE_BOTH: int(src.get(SOURCE_BOTH, 0)),
            "with_geometry": int(has_geometry(self.records).sum()),
        }


def has_geometry(gdf: gpd.GeoDataFrame) -> pd.Series:
    """True where the row carries a non-empty geometry."""
    geom = gdf.geometry
    return (geom.notna() & ~geom.is_empty).astype(bool)


def _target_polygon(boundary: gpd.GeoDataFrame | gpd.GeoSeries | BaseGeometry, crs) -> BaseGeometry:
    if isinstance(boundary, BaseGeometry):
        return boundary
    if boundary.crs is not None and crs is not None and boundary.crs != crs:
        boundary = boundary.to_crs(crs)
    geom = boundary.geometry if isinstance(boundary, gpd.GeoDataFrame) else boundary
    return geom.union_all()


def spatial_candidates(regional: gpd.GeoDataFrame, polygon: BaseGeometry) -> gpd.GeoDataFrame:
    """Rows whose point lies strictly inside *polygon*."""
    pool = regional[has_geometry(regional)]
    if pool.empty:
        return pool.copy()
    return pool[pool.geometry.within(polygon)].copy()


def reconcile(
    regional: gpd.GeoDataFrame,
    boundary: gpd.GeoDataFrame | gpd.GeoSeries | BaseGeometry,
    place: str,
    key: str = "project_id",
    county_col: str = "county_name",
    name_col: str = "project_name",
    collisions: List[str] | None = None,
) -> ReconcileResult:
    """Return one row per project id matched by text, by space, or by both."""
    polygon = _target_polygon(boundary, regional.crs)

    patterns = matched_patterns(regional, place, county_col, name_col)
    text = regional[patterns != ""].copy()
    text["matched_patterns"] = patterns[patterns != ""]
    spatial = spatial_candidates(regional, polygon)
    spatial["matched_patterns"] = patterns.reindex(spatial.index).fillna("")

    text_ids = set(text[key])
    spatial_ids = set(spatial[key])
    logger.info(
        f"{place}: {len(text_ids)} projects by text, {len(spatial_ids)} by containment, "
        f"{len(text_ids & spatial_ids)} by both"
    )

    combined = pd.concat([spatial, text], ignore_index=True)
    combined = gpd.GeoDataFrame(combined, geometry=regional.geometry.name, crs=regional.crs)
    combined["_has_geom"] = has_geometry(combined)
    combined["_order"] = range(len(combined))
    combined = combined.sort_values([key, "_has_geom", "_order"], ascending=[True, False, True])
    combined = combined.drop_duplicates(subset=[key], keep="first")

    def _source(pid: object) -> str:
        if pid in spatial_ids and pid in text_ids:
            return SOURCE_BOTH
        return SOURCE_SPATIAL if pid in spatial_ids else SOURCE_TEXT

    combined["match_source"] = combined[key].map(_source)
    records = combined.drop(columns=["_has_geom", "_order"]).reset_index(drop=True)

    if records.empty:
        logger.warning(f"{place}: no matching projects (valid empty result)")
    else:
        logger.success(f"{place}: {len(records)} reconciled projects")

    return ReconcileResult(
        place=place,
        records=records,
        text_ids=text_ids,
        spatial_ids=spatial_ids,
        collisions=list(collisions or []),
        key=key,
    )
