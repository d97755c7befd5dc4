"""Read-only access to the restoration project SQLite database.

Usage::

    with open_database(path) as db:
        db.list_tables()
        df = db.read_table("projects")

The connection is opened with ``mode=ro`` so nothing can be written back, and
it is closed when the ``with`` block exits, whether or not the body raised.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence

import pandas as pd
from loguru import logger

from .errors import DatabaseConnectionError, DatabaseQueryError


class ProjectDatabase:
    """Thin wrapper over a sqlite3 connection returning pandas frames."""

    def __init__(self, conn: sqlite3.Connection, source: str = ":memory:") -> None:
        self._conn = conn
        self.source = source
        self._tables: list[str] | None = None

    @classmethod
    def from_connection(cls, conn: sqlite3.Connection, source: str = ":memory:") -> "ProjectDatabase":
        return cls(conn, source)

    # ------------------------------------------------------------------
    # Catalogue
    # ------------------------------------------------------------------

    def list_tables(self) -> list[str]:
        if self._tables is None:
            df = self.query(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            )
            self._tables = df["name"].tolist()
        return list(self._tables)

    def has_table(self, table: str) -> bool:
        return table in self.list_tables()

    def list_columns(self, table: str) -> list[str]:
        self._check_table(table)
        df = self.query(f'PRAGMA table_info("{table}")')
        return df["name"].tolist()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self, sql: str, params: Sequence[object] | None = None) -> pd.DataFrame:
        try:
            return pd.read_sql_query(sql, self._conn, params=params)
        except (sqlite3.Error, pd.errors.DatabaseError) as exc:
            raise DatabaseQueryError(f"Query failed on {self.source}: {exc}") from exc

    def read_table(self, table: str, columns: Sequence[str] | None = None) -> pd.DataFrame:
        """Return the whole of *table* (optionally a column subset)."""
        self._check_table(table)
        if columns:
            known = set(self.list_columns(table))
            missing = [c for c in columns if c not in known]
            if missing:
                raise DatabaseQueryError(f"Table {table!r} has no column(s) {missing}")
            cols = ", ".join(f'"{c}"' for c in columns)
        else:
            cols = "*"
        return self.query(f'SELECT {cols} FROM "{table}"')

    def read_rows_for_ids(self, table: str, key: str, ids: Sequence[object]) -> pd.DataFrame:
        """Return rows of *table* whose *key* is in *ids*.

        Filtering happens in pandas so the id list never hits SQLite's
        host-parameter limit.
        """
        df = self.read_table(table)
        if key not in df.columns:
            raise DatabaseQueryError(f"Table {table!r} has no key column {key!r}")
        return df[df[key].isin(list(ids))].reset_index(drop=True)

    def close(self) -> None:
        self._conn.close()

    def _check_table(self, table: str) -> None:
        # Names are interpolated into SQL, so only accept catalogued tables
        if not self.has_table(table):
            raise DatabaseQueryError(f"Unknown table {table!r} in {self.source}")


def _connect_read_only(path: Path) -> sqlite3.Connection:
    if not path.exists():
        raise DatabaseConnectionError(f"Database file not found: {path}")
    # as_uri percent-encodes "#", "?" and "%" so mode=ro is never cut off
    uri = f"{path.resolve().as_uri()}?mode=ro"
    try:
        conn = sqlite3.connect(uri, uri=True)
    except sqlite3.Error as exc:
        raise DatabaseConnectionError(f"Cannot open {path} read-only: {exc}") from exc
    try:
        # Touch the catalogue so a non-database file fails here, not mid-run
        conn.execute("SELECT 1 FROM sqlite_master LIMIT 1")
    except sqlite3.Error as exc:
        conn.close()
        raise DatabaseConnectionError(f"{path} is not a readable SQLite database: {exc}") from exc
    return conn


@contextmanager
def open_database(path: Path | str) -> Iterator[ProjectDatabase]:
    """Open *path* read-only and close it when the block exits."""
    path = Path(path)
    conn = _connect_read_only(path)
    logger.info(f"Opened {path.name} (read-only)")
    db = ProjectDatabase(conn, source=str(path))
    try:
        yield db
    finally:
        db.close()
        logger.debug(f"Closed {path.name}")
