"""Global configuration constants for the restoration-subset pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pyproj import CRS

# ---------------------------------------------------------------------------
# Core paths
# ---------------------------------------------------------------------------
ROOT_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = ROOT_DIR / "data"
RAW_DIR = DATA_DIR / "raw"
REFERENCE_DIR = DATA_DIR / "reference"
PROCESSED_DIR = DATA_DIR / "processed"
REPORTS_DIR = ROOT_DIR / "reports"

DEFAULT_DB = RAW_DIR / "restoration_projects.sqlite"


def ensure_dirs() -> None:
    """Create the data/report sub-directories (called by the CLI, not on import)."""
    for _dir in (RAW_DIR, REFERENCE_DIR, PROCESSED_DIR, REPORTS_DIR):
        _dir.mkdir(parents=True, exist_ok=True)


# CRS ----------------------------------------------------------------------
CRS_GEOGRAPHIC = "EPSG:4269"  # NAD83 lat/lon, same as TIGER/Line

# TIGER/Line vintages to try, newest first ----------------------------------
TIGER_YEARS = tuple(range(2023, 2009, -1))


# ---------------------------------------------------------------------------
# Database schema (fixed external contract)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Schema:
    """Table / column names of the restoration project database."""

    key: str = "project_id"
    projects: str = "projects"
    project_name: str = "project_name"
    county: str = "county_name"

    # Lookup table mapping project_id -> state FIPS code
    region_lookup: str = "project_state"
    region_code: str = "state_fips"

    # Satellite tables, joined in this order
    location: str = "project_location"
    identification: str = "project_identification"
    activities: str = "project_activities"
    species: str = "project_species"

    lat_fields: tuple[str, str, str, str] = ("lat_deg", "lat_min", "lat_sec", "lat_dir")
    lon_fields: tuple[str, str, str, str] = ("lon_deg", "lon_min", "lon_sec", "lon_dir")

    @property
    def satellites(self) -> tuple[str, ...]:
        return (self.location, self.identification, self.activities, self.species)

    @property
    def coordinate_fields(self) -> tuple[str, ...]:
        return self.lat_fields + self.lon_fields


# ---------------------------------------------------------------------------
# Per-run context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RunConfig:
    """Explicit context for one run; passed to every step instead of module state."""

    state_code: str
    state_name: str
    county_name: str
    crs: str = CRS_GEOGRAPHIC
    schema: Schema = field(default_factory=Schema)

    def __post_init__(self) -> None:
        # Fail early on a typo'd CRS rather than deep inside geopandas
        CRS.from_user_input(self.crs)
        object.__setattr__(self, "state_code", str(self.state_code).strip())
        object.__setattr__(self, "county_name", self.county_name.strip())
        object.__setattr__(self, "state_name", self.state_name.strip())

    @property
    def output_stem(self) -> str:
        county = self.county_name.lower().replace(" ", "_")
        return f"{self.state_code}_{county}"
