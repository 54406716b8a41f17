"""Installed package version."""

from importlib import metadata

try:
    __version__ = metadata.version("ocular-monitor")
except metadata.PackageNotFoundError:  # pragma: no cover - uninstalled source tree
    __version__ = "0.0.0+unknown"

__all__ = ["__version__"]
