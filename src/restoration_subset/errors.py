"""Exception types raised by the pipeline.

Connectivity and boundary errors are fatal for a run. Malformed coordinates are
raised inside the normaliser and converted to a per-record flag there.
"""
from __future__ import annotations


class RestorationSubsetError(Exception):
    """Base class for all pipeline errors."""


class DatabaseConnectionError(RestorationSubsetError):
    """The database file could not be opened."""


class DatabaseQueryError(RestorationSubsetError):
    """A query against an open database failed."""


class JoinError(RestorationSubsetError):
    """A join produced fewer rows than its base table."""


class MalformedCoordinateError(RestorationSubsetError, ValueError):
    """Coordinate fields are present but out of range or unparseable."""


class BoundaryDownloadError(RestorationSubsetError, RuntimeError):
    """Every download attempt for a reference layer failed."""


class BoundaryNotFoundError(RestorationSubsetError, LookupError):
    """No boundary polygon matched the requested name."""

    def __init__(self, name: str, suggestions: list[str] | None = None) -> None:
        self.name = name
        self.suggestions = suggestions or []
        msg = f"No boundary named {name!r}"
        if self.suggestions:
            msg += f" (did you mean: {', '.join(self.suggestions)}?)"
        super().__init__(msg)
