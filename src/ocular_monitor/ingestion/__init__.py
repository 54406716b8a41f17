"""Polled HTTP ingestion for telemetry and predictions."""

from __future__ import annotations

from .http import DEFAULT_TIMEOUT, JsonSource, PredictionSource, TelemetrySource
from .poller import DEFAULT_POLL_INTERVAL, Poller, PollerState

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_TIMEOUT",
    "JsonSource",
    "Poller",
    "PollerState",
    "PredictionSource",
    "TelemetrySource",
]
