"""Place-name patterns for the text half of the county reconciliation.

County names in the project table are free text: mixed case, sometimes a
delimited list of several counties ("Humboldt; Trinity"), sometimes with a
"County" suffix. The patterns below are the complete, versioned set used to
decide that a record mentions a place. Bump ``PATTERN_VERSION`` whenever the
list changes; the version is written into every summary report.

All patterns are compiled case-insensitively, and ``{name}`` is substituted
with the regex-escaped place name.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Sequence

import geopandas as gpd
import pandas as pd
from loguru import logger
from rapidfuzz import fuzz, process

PATTERN_VERSION = "1"

# Separators seen between county names in a multi-county field
_SEP = r"[,;/&|]"
_SUFFIX = r"(?:\s+county)?"


@dataclass(frozen=True)
class PlacePattern:
    name: str
    field: str  # "county" or "project_name"
    template: str
    description: str

    def compile(self, place: str) -> re.Pattern[str]:
        return re.compile(self.template.format(name=re.escape(place.strip())), re.IGNORECASE)


PLACE_PATTERNS: tuple[PlacePattern, ...] = (
    PlacePattern(
        "exact", "county",
        rf"^\s*{{name}}{_SUFFIX}\s*$",
        "whole county field is the place (optionally '... County')",
    ),
    PlacePattern(
        "leading_token", "county",
        rf"^\s*{{name}}{_SUFFIX}\s*{_SEP}",
        "first entry of a delimited county list",
    ),
    PlacePattern(
        "trailing_token", "county",
        rf"{_SEP}\s*{{name}}{_SUFFIX}\s*$",
        "last entry of a delimited county list",
    ),
    PlacePattern(
        "inner_token", "county",
        rf"{_SEP}\s*{{name}}{_SUFFIX}\s*{_SEP}",
        "middle entry of a delimited county list",
    ),
    PlacePattern(
        "project_name_county", "project_name",
        r"\b{name}\s+(?:county\b|co\b\.?)",
        "project name mentions '<place> County' or '<place> Co.'",
    ),
)


def _compiled(place: str, patterns: Sequence[PlacePattern]) -> List[tuple[PlacePattern, re.Pattern[str]]]:
    return [(p, p.compile(place)) for p in patterns]


def matched_patterns(
    frame: pd.DataFrame,
    place: str,
    county_col: str = "county_name",
    name_col: str = "project_name",
    patterns: Sequence[PlacePattern] = PLACE_PATTERNS,
) -> pd.Series:
    """Return, per row, the comma-joined names of the patterns that hit ('' if none)."""
    cols = {"county": county_col, "project_name": name_col}
    hits: Dict[str, pd.Series] = {}
    for pat, rx in _compiled(place, patterns):
        col = cols[pat.field]
        if col not in frame.columns:
            continue
        text = frame[col].astype("string")
        hits[pat.name] = text.str.contains(rx, regex=True, na=False).astype(bool)

    if not hits or frame.empty:
        return pd.Series("", index=frame.index, dtype=object)
    hit_df = pd.DataFrame(hits, index=frame.index)
    return hit_df.apply(lambda r: ",".join(n for n, v in r.items() if v), axis=1).astype(object)


def text_match(
    frame: pd.DataFrame,
    place: str,
    county_col: str = "county_name",
    name_col: str = "project_name",
    patterns: Sequence[PlacePattern] = PLACE_PATTERNS,
) -> pd.Series:
    """Boolean mask: rows whose county or project name matches any pattern."""
    return matched_patterns(frame, place, county_col, name_col, patterns) != ""


# ---------------------------------------------------------------------------
# Ambiguity checks
# ---------------------------------------------------------------------------

def find_name_collisions(
    place: str,
    counties: gpd.GeoDataFrame | pd.DataFrame,
    state_fips: str,
    name_col: str = "NAME",
    state_col: str = "STATEFP",
) -> List[str]:
    """List county names that a text match on *place* could be confused with.

    Two kinds of collision are reported:

    * the same name used by a county in another state;
    * a different county in the same state whose name contains *place* as a
      whole word (the project-name pattern cannot tell them apart).
    """
    if counties is None or counties.empty:
        return []

    target = place.strip().lower()
    word = re.compile(rf"\b{re.escape(target)}\b", re.IGNORECASE)
    names = counties[name_col].astype(str).str.strip()
    states = counties[state_col].astype(str).str.strip()

    out: List[str] = []
    for name, st in zip(names, states):
        if st != state_fips and name.lower() == target:
            out.append(f"{name} (STATEFP {st})")
        elif st == state_fips and name.lower() != target and word.search(name):
            out.append(f"{name} (same state)")

    out = sorted(set(out))
    for c in out:
        logger.warning(f"Place-name collision for {place!r}: {c}")
    return out


def closest_names(name: str, choices: Sequence[str], limit: int = 3, cutoff: float = 70.0) -> List[str]:
    """Closest spellings of *name* among *choices* (for 'did you mean' messages)."""
    matches = process.extract(name, list(choices), scorer=fuzz.WRatio, limit=limit, score_cutoff=cutoff)
    return [m[0] for m in matches]
