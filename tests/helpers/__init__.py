"""Convenience re-exports for test helpers."""

from __future__ import annotations

from .feeds import (
    BASE_TIME,
    build_feed_entry,
    build_feed_payload,
    build_records,
    synthetic_history,
)
from .http import (
    PREDICTION_URL,
    TELEMETRY_URL,
    RecordingHandler,
    SlowHandler,
    json_response,
    make_client,
)

__all__ = [
    "BASE_TIME",
    "PREDICTION_URL",
    "RecordingHandler",
    "SlowHandler",
    "TELEMETRY_URL",
    "build_feed_entry",
    "build_feed_payload",
    "build_records",
    "json_response",
    "make_client",
    "synthetic_history",
]
