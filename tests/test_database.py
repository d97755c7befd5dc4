from __future__ import annotations

import sqlite3

import pytest

from restoration_subset.database import open_database
from restoration_subset.errors import DatabaseConnectionError, DatabaseQueryError


def test_catalogue(db_file):
    with open_database(db_file) as db:
        assert "projects" in db.list_tables()
        assert "project_location" in db.list_tables()
        assert db.list_columns("projects") == ["project_id", "project_name", "county_name"]
        df = db.read_table("projects", columns=["project_id"])
        assert len(df) == 6


def test_unknown_table_and_column(db_file):
    with open_database(db_file) as db:
        with pytest.raises(DatabaseQueryError):
            db.read_table("no_such_table")
        with pytest.raises(DatabaseQueryError):
            db.read_table("projects", columns=["nope"])
        with pytest.raises(DatabaseQueryError):
            db.query("SELECT * FROM still_not_there")


def test_connection_is_read_only(db_file):
    with open_database(db_file) as db:
        with pytest.raises(sqlite3.OperationalError):
            db._conn.execute("DELETE FROM projects")


def test_connection_closed_even_when_body_raises(db_file):
    captured = {}
    with pytest.raises(RuntimeError):
        with open_database(db_file) as db:
            captured["db"] = db
            raise RuntimeError("step failed")
    with pytest.raises(sqlite3.ProgrammingError):
        captured["db"]._conn.execute("SELECT 1")


def test_missing_file_is_fatal(tmp_path):
    with pytest.raises(DatabaseConnectionError):
        with open_database(tmp_path / "absent.sqlite"):
            pass


def test_non_database_file_is_fatal(tmp_path):
    bogus = tmp_path / "notes.sqlite"
    bogus.write_text("this is not a database\n" * 50, encoding="utf-8")
    with pytest.raises(DatabaseConnectionError):
        with open_database(bogus):
            pass


def test_read_rows_for_ids(memory_db):
    df = memory_db.read_rows_for_ids("project_activities", "project_id", [101])
    assert df["project_id"].tolist() == [101, 101]


def test_uri_special_characters_stay_read_only(tmp_path):
    folder = tmp_path / "run#1"
    folder.mkdir()
    path = folder / "db.sqlite"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.commit()
    conn.close()

    with open_database(path) as db:
        assert db.list_tables() == ["t"]
        with pytest.raises(sqlite3.OperationalError):
            db._conn.execute("INSERT INTO t VALUES (1)")
    assert not (tmp_path / "run").exists()
