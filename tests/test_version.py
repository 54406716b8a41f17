"""Tests for the package version metadata."""

import importlib
from importlib import metadata

from packaging.version import Version

import ocular_monitor
from ocular_monitor import _version as version_module


def test_version_is_semver_patch():
    version = Version(ocular_monitor.__version__)

    assert len(version.release) == 3


def test_uninstalled_tree_falls_back(monkeypatch):
    def _missing(name):
        raise metadata.PackageNotFoundError(name)

    monkeypatch.setattr(metadata, "version", _missing)
    try:
        reloaded = importlib.reload(version_module)
        assert reloaded.__version__ == "0.0.0+unknown"
    finally:
        monkeypatch.undo()
        importlib.reload(version_module)
