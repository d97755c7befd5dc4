# -*- coding: utf-8 -*-
"""Sanity-check maps for a reconciled county.

* ``render_overlay``     – static PNG (matplotlib): state outline, county
  outline, projects inside the county and the rest of the state's points.
* ``render_interactive`` – Folium HTML map of the reconciled records that
  carry a point, coloured by how they were matched.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict

import folium  # type: ignore
import geopandas as gpd
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from loguru import logger  # noqa: E402

from .reconcile import SOURCE_BOTH, SOURCE_SPATIAL, SOURCE_TEXT, ReconcileResult, has_geometry  # noqa: E402

# match_source → marker colour
COLOURS: Dict[str, str] = {
    SOURCE_SPATIAL: "tab:blue",
    SOURCE_BOTH: "tab:green",
    SOURCE_TEXT: "tab:orange",
}
_FOLIUM_COLOURS = {SOURCE_SPATIAL: "blue", SOURCE_BOTH: "green", SOURCE_TEXT: "orange"}


def render_overlay(
    state: gpd.GeoDataFrame,
    county: gpd.GeoDataFrame,
    regional: gpd.GeoDataFrame,
    result: ReconcileResult,
    out_path: Path,
) -> Path:
    """Write a PNG overlay of boundaries and project points; return *out_path*."""
    fig, ax = plt.subplots(figsize=(8, 10))
    try:
        state.boundary.plot(ax=ax, color="black", linewidth=0.6)
        county.boundary.plot(ax=ax, color="red", linewidth=1.0)

        others = regional[has_geometry(regional) & ~regional[result.key].isin(result.ids)]
        if not others.empty:
            others.plot(ax=ax, color="lightgrey", markersize=4, label="other projects in state")

        recs = result.records[has_geometry(result.records)]
        for source, colour in COLOURS.items():
            sub = recs[recs["match_source"] == source]
            if not sub.empty:
                sub.plot(ax=ax, color=colour, markersize=10, label=f"{source} ({len(sub)})")

        ax.set_title(f"{result.place}: {len(result.records)} reconciled projects")
        ax.set_xlabel("Longitude")
        ax.set_ylabel("Latitude")
        if ax.get_legend_handles_labels()[0]:
            ax.legend(loc="lower left", fontsize=8)

        out_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_path, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)
    logger.success(f"Overlay written → {out_path}")
    return out_path


def render_interactive(county: gpd.GeoDataFrame, result: ReconcileResult, out_path: Path) -> Path:
    """Write a Folium map of the reconciled points; return *out_path*."""
    centre = county.geometry.union_all().representative_point()
    m = folium.Map(location=[centre.y, centre.x], zoom_start=9, tiles="CartoDB positron")
    folium.GeoJson(
        county.to_crs("EPSG:4326")[["geometry"]],
        style_function=lambda _: {"color": "red", "weight": 2, "fillOpacity": 0.0},
    ).add_to(m)

    recs = result.records[has_geometry(result.records)]
    name_col = "project_name" if "project_name" in recs.columns else result.key
    for _, row in recs.iterrows():
        colour = _FOLIUM_COLOURS.get(row["match_source"], "gray")
        popup_html = (
            f"<b>ID:</b> {row[result.key]}<br>"
            f"<b>Name:</b> {row[name_col]}<br>"
            f"<b>Matched by:</b> {row['match_source']}"
        )
        folium.CircleMarker(
            location=[row.geometry.y, row.geometry.x],
            radius=4,
            color=colour,
            fill=True,
            fill_color=colour,
            fill_opacity=0.85,
            popup=folium.Popup(popup_html, max_width=300),
        ).add_to(m)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    m.save(str(out_path))
    logger.success(f"Interactive map written → {out_path}")
    return out_path
