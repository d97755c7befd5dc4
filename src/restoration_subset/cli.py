"""Command-line entry point.

Examples::

    restoration-subset tables --db data/raw/restoration_projects.sqlite
    restoration-subset columns project_location --db data/raw/restoration_projects.sqlite
    restoration-subset run --db data/raw/restoration_projects.sqlite \\
        --state-code 06 --state-name California --county Humboldt
"""
from __future__ import annotations

import sys
from pathlib import Path

import click
from loguru import logger

from . import config
from .config import RunConfig
from .database import open_database
from .errors import DatabaseConnectionError, DatabaseQueryError, RestorationSubsetError

_db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=config.DEFAULT_DB,
    show_default=True,
    help="SQLite database of restoration projects (opened read-only).",
)


def _setup_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(lambda m: print(m, end="", file=sys.stderr), level="DEBUG" if verbose else "INFO")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging.")
def cli(verbose: bool) -> None:
    """Subset and reconcile river-restoration project records."""
    _setup_logging(verbose)


@cli.command()
@_db_option
def tables(db_path: Path) -> None:
    """List the tables in the database."""
    try:
        with open_database(db_path) as db:
            for name in db.list_tables():
                click.echo(name)
    except (DatabaseConnectionError, DatabaseQueryError) as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.argument("table")
@_db_option
def columns(table: str, db_path: Path) -> None:
    """List the columns of TABLE."""
    try:
        with open_database(db_path) as db:
            for name in db.list_columns(table):
                click.echo(name)
    except (DatabaseConnectionError, DatabaseQueryError) as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@_db_option
@click.option("--state-code", default="06", show_default=True, help="State FIPS code used by the lookup table.")
@click.option("--state-name", default="California", show_default=True, help="State boundary name (TIGER NAME).")
@click.option("--county", "county_name", required=True, help="County to reconcile, e.g. Humboldt.")
@click.option("--crs", default=config.CRS_GEOGRAPHIC, show_default=True, help="CRS for geometry and boundaries.")
@click.option("--out-dir", type=click.Path(file_okay=False, path_type=Path), default=config.PROCESSED_DIR, show_default=True)
@click.option("--reports-dir", type=click.Path(file_okay=False, path_type=Path), default=config.REPORTS_DIR, show_default=True)
@click.option("--no-render", is_flag=True, help="Skip the PNG / HTML maps.")
def run(
    db_path: Path,
    state_code: str,
    state_name: str,
    county_name: str,
    crs: str,
    out_dir: Path,
    reports_dir: Path,
    no_render: bool,
) -> None:
    """Build the reconciled project list for one county."""
    from .pipeline import run_from_path

    config.ensure_dirs()
    cfg = RunConfig(state_code=state_code, state_name=state_name, county_name=county_name, crs=crs)
    try:
        res = run_from_path(db_path, cfg, out_dir=out_dir, reports_dir=reports_dir, render=not no_render)
    except RestorationSubsetError as exc:
        logger.error(str(exc))
        raise click.ClickException(str(exc)) from exc

    counts = res.reconciled.counts()
    click.echo(
        f"{county_name}: {counts['total']} projects "
        f"({counts['both']} both, {counts['spatial']} spatial only, {counts['text']} text only)"
    )


@cli.command("fetch-boundaries")
def fetch_boundaries() -> None:
    """Download and cache the TIGER state and county layers."""
    from .boundaries import main as _main

    try:
        _main()
    except RestorationSubsetError as exc:
        logger.error(str(exc))
        raise click.ClickException(str(exc)) from exc


if __name__ == "__main__":  # pragma: no cover
    try:
        cli()
    except KeyboardInterrupt:
        logger.error("Interrupted by user – exiting.")
