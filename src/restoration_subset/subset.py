"""Select the project records belonging to one region (state FIPS code).

The lookup table maps ``project_id`` to a region code. Matching is an exact
string comparison after trimming whitespace; a code nobody declares gives an
empty result.
"""
from __future__ import annotations

from typing import List

import pandas as pd
from loguru import logger

from .config import Schema
from .database import ProjectDatabase


def _norm_code(val: object) -> str | None:
    """'06' stays '06'; 6.0 (INTEGER column with NULLs) becomes '6'; NULLs become None."""
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return None
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()


def select_region_ids(db: ProjectDatabase, region_code: str, schema: Schema = Schema()) -> List[object]:
    """Return sorted project ids whose lookup row declares exactly *region_code*."""
    code = _norm_code(region_code)
    lookup = db.read_table(schema.region_lookup, columns=[schema.key, schema.region_code])
    codes = lookup[schema.region_code].map(_norm_code)
    ids = lookup.loc[codes == code, schema.key].drop_duplicates().sort_values().tolist()
    logger.info(f"Region {code!r}: {len(ids)} of {lookup[schema.key].nunique()} projects selected")
    return ids


def select_region_projects(db: ProjectDatabase, region_code: str, schema: Schema = Schema()) -> pd.DataFrame:
    """Return base project rows for the region, ordered by id."""
    ids = select_region_ids(db, region_code, schema)
    projects = db.read_table(schema.projects)
    subset = projects[projects[schema.key].isin(ids)]
    return subset.sort_values(schema.key, kind="mergesort").reset_index(drop=True)
