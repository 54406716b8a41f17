"""Logging utilities for the ocular monitor."""

from ocular_monitor.logging.config import JsonFormatter, setup_logging

__all__ = ["JsonFormatter", "setup_logging"]
