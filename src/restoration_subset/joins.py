"""Left-join the satellite tables onto the regional project subset.

Satellite tables that hold several rows per project (activities, species) fan
the base row out. That is the accepted flat-table semantics: the multiplicity
is kept and logged here, and collapsing to one row per project only happens in
:mod:`restoration_subset.reconcile`.
"""
from __future__ import annotations

from typing import Dict, Iterable, Mapping

import pandas as pd
from loguru import logger

from .config import Schema
from .database import ProjectDatabase
from .errors import JoinError


def load_satellites(db: ProjectDatabase, ids: Iterable[object], schema: Schema = Schema()) -> Dict[str, pd.DataFrame]:
    """Read every satellite table restricted to *ids*; absent tables are skipped."""
    ids = list(ids)
    out: Dict[str, pd.DataFrame] = {}
    for table in schema.satellites:
        if not db.has_table(table):
            logger.warning(f"Satellite table {table!r} not in database – skipped")
            continue
        out[table] = db.read_rows_for_ids(table, schema.key, ids)
        logger.debug(f"{table}: {len(out[table])} rows for {len(ids)} projects")
    return out


def satellite_multiplicity(frame: pd.DataFrame, key: str) -> int:
    """Maximum number of rows sharing one *key* value (0 for an empty frame)."""
    if frame.empty:
        return 0
    return int(frame.groupby(key).size().max())


def assemble(base: pd.DataFrame, satellites: Mapping[str, pd.DataFrame], key: str = "project_id") -> pd.DataFrame:
    """Return one wide table: *base* left-joined with each satellite in order.

    Columns that already exist on the left side get a ``_<table>`` suffix.
    Raises :class:`JoinError` if the row count ever drops below the base's.
    """
    wide = base.copy()
    n_base = len(base)

    for table, sat in satellites.items():
        if key not in sat.columns:
            raise JoinError(f"Satellite {table!r} has no key column {key!r}")

        mult = satellite_multiplicity(sat, key)
        if mult > 1:
            logger.info(f"{table}: one-to-many (up to {mult} rows per {key}); base rows will repeat")

        clash = [c for c in sat.columns if c != key and c in wide.columns]
        sat = sat.rename(columns={c: f"{c}_{table}" for c in clash})

        wide = wide.merge(sat, on=key, how="left", sort=False)
        if len(wide) < n_base:
            raise JoinError(f"Join with {table!r} dropped rows: {len(wide)} < {n_base}")

    unmatched = {
        table: int((~base[key].isin(sat[key])).sum()) for table, sat in satellites.items()
    }
    for table, n in unmatched.items():
        if n:
            logger.debug(f"{table}: {n} projects without a matching row")

    logger.info(f"Joined {len(satellites)} satellite tables → {len(wide)} rows ({n_base} projects)")
    return wide
