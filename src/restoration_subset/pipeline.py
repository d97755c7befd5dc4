"""End-to-end run: region subset → joins → geometry → county reconciliation.

``run_pipeline`` works on an already-open :class:`ProjectDatabase` and
injected boundary layers, so tests can drive it with an in-memory database
and hand-made polygons. ``run_from_path`` is the real entry point: it scopes
the database connection to a ``with`` block.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import geopandas as gpd
import pandas as pd
from loguru import logger

from . import boundaries, config
from .config import RunConfig
from .coordinates import attach_geometry, coordinate_issues
from .database import ProjectDatabase, open_database
from .export import export_records, write_summary
from .joins import assemble, load_satellites
from .place_patterns import find_name_collisions
from .reconcile import ReconcileResult, reconcile
from .subset import select_region_projects


@dataclass
class PipelineResult:
    flat: pd.DataFrame
    regional: gpd.GeoDataFrame
    reconciled: ReconcileResult
    issues: pd.DataFrame
    outputs: Optional[Dict[str, Path]] = None


def run_pipeline(
    db: ProjectDatabase,
    cfg: RunConfig,
    county_boundary: gpd.GeoDataFrame,
    all_counties: gpd.GeoDataFrame | None = None,
) -> PipelineResult:
    """Run every in-memory step against an open database."""
    schema = cfg.schema

    logger.info(f"=== {cfg.county_name}, state {cfg.state_code} ===")
    base = select_region_projects(db, cfg.state_code, schema)
    satellites = load_satellites(db, base[schema.key], schema)
    flat = assemble(base, satellites, key=schema.key)

    regional = attach_geometry(flat, crs=cfg.crs, schema=schema)
    issues = coordinate_issues(regional, schema.key)

    collisions = (
        find_name_collisions(cfg.county_name, all_counties, cfg.state_code)
        if all_counties is not None
        else []
    )
    result = reconcile(
        regional,
        county_boundary,
        cfg.county_name,
        key=schema.key,
        county_col=schema.county,
        name_col=schema.project_name,
        collisions=collisions,
    )
    return PipelineResult(flat=flat, regional=regional, reconciled=result, issues=issues)


def run_from_path(
    db_path: Path,
    cfg: RunConfig,
    out_dir: Path = config.PROCESSED_DIR,
    reports_dir: Path = config.REPORTS_DIR,
    render: bool = True,
) -> PipelineResult:
    """Fetch boundaries, run the pipeline on *db_path*, write outputs and maps.

    The connection is held for the whole run and released on the way out,
    whichever step fails.
    """
    with open_database(db_path) as db:
        state = boundaries.state_boundary(cfg.state_name, crs=cfg.crs)
        counties = boundaries.county_layer(crs=cfg.crs)
        state_fips = str(state["STATEFP"].iloc[0])
        if state_fips != cfg.state_code:
            logger.warning(f"{cfg.state_name} has STATEFP {state_fips}, run uses region code {cfg.state_code}")
        county = boundaries.select_county(counties, cfg.county_name, state_fips)

        res = run_pipeline(db, cfg, county, all_counties=counties)

        stem = cfg.output_stem
        res.outputs = export_records(res.reconciled, out_dir, stem)
        res.outputs["summary"] = write_summary(res.reconciled, reports_dir / f"{stem}_summary.md", res.issues)

        if render:
            from .render import render_interactive, render_overlay

            res.outputs["png"] = render_overlay(
                state, county, res.regional, res.reconciled, reports_dir / f"{stem}_overlay.png"
            )
            res.outputs["html"] = render_interactive(county, res.reconciled, reports_dir / f"{stem}_map.html")
    return res
