"""Command line utilities for the ocular monitor."""

from ocular_monitor.cli.app import main, run_cli

__all__ = ["main", "run_cli"]
