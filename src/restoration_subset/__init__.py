"""Restoration project subsetting and county reconciliation."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("restoration-subset")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

from . import config  # re-export for convenience

__all__ = ["config", "__version__"]
