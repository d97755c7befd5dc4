"""Write the reconciled county table to disk.

Outputs (``<stem>`` is e.g. ``06_humboldt``):

* ``<stem>.csv``      – every reconciled row; geometry as WKT, blank when absent
* ``<stem>.geojson``  – rows with a point only
* ``<stem>_summary.md`` – counts, collisions, pattern version, coordinate issues
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict

import geopandas as gpd
import pandas as pd
from loguru import logger

from .reconcile import SOURCE_BOTH, SOURCE_SPATIAL, SOURCE_TEXT, ReconcileResult, has_geometry


def _flat(records: gpd.GeoDataFrame) -> pd.DataFrame:
    df = pd.DataFrame(records.drop(columns=records.geometry.name))
    df["geometry_wkt"] = [g.wkt if g is not None and not g.is_empty else "" for g in records.geometry]
    return df


def export_records(result: ReconcileResult, out_dir: Path, stem: str) -> Dict[str, Path]:
    """Write CSV + GeoJSON for *result*; return the written paths."""
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = {"csv": out_dir / f"{stem}.csv", "geojson": out_dir / f"{stem}.geojson"}

    _flat(result.records).to_csv(paths["csv"], index=False)

    with_geom = result.records[has_geometry(result.records)]
    if paths["geojson"].exists():
        paths["geojson"].unlink()
    if with_geom.empty:
        logger.warning("No reconciled rows carry geometry – GeoJSON skipped")
        del paths["geojson"]
    else:
        with_geom.to_file(paths["geojson"], driver="GeoJSON")

    for kind, p in paths.items():
        logger.success(f"{kind.upper()} written → {p}")
    return paths


def summary_lines(result: ReconcileResult, issues: pd.DataFrame | None = None) -> list[str]:
    c = result.counts()
    lines = [
        f"# {result.place}: reconciled restoration projects",
        "",
        f"Place-pattern version: {result.pattern_version}",
        "",
        f"Total projects:        {c['total']:6d}",
        f"Matched by both:       {c[SOURCE_BOTH]:6d}",
        f"Spatial only:          {c[SOURCE_SPATIAL]:6d}",
        f"Text only:             {c[SOURCE_TEXT]:6d}",
        f"With geometry:         {c['with_geometry']:6d}",
        "",
        "## Place-name collisions",
        "",
    ]
    lines += [f"- {col}" for col in result.collisions] or ["None detected."]
    lines += ["", "## Malformed coordinates", ""]
    if issues is None or issues.empty:
        lines.append("None.")
    else:
        key, reason = issues.columns[:2]
        lines += [f"- {row[key]}: {row[reason]}" for _, row in issues.iterrows()]
    return lines


def write_summary(result: ReconcileResult, out_path: Path, issues: pd.DataFrame | None = None) -> Path:
    """Write the markdown summary report and echo it to the log."""
    lines = summary_lines(result, issues)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info("\n" + "\n".join(lines[4:9]))
    logger.success(f"Markdown report written → {out_path}")
    return out_path
