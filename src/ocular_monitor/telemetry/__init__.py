"""Telemetry feed decoding and series construction."""

from __future__ import annotations

from .bands import (
    DEFAULT_BAND_LAYOUT,
    DEFAULT_CHANNEL_COUNT,
    Band,
    BandLayout,
    Channel,
    decode_band_vector,
)
from .records import (
    DEFAULT_INDICATOR_FIELDS,
    FeedRecord,
    coerce_scalar,
    decode_feed_payload,
    decode_feed_record,
)
from .series import (
    SeriesSnapshot,
    TimeSeries,
    build_series,
    deinterleave,
    extract_channel,
    extract_channels,
)

__all__ = [
    "Band",
    "BandLayout",
    "Channel",
    "DEFAULT_BAND_LAYOUT",
    "DEFAULT_CHANNEL_COUNT",
    "DEFAULT_INDICATOR_FIELDS",
    "FeedRecord",
    "SeriesSnapshot",
    "TimeSeries",
    "build_series",
    "coerce_scalar",
    "decode_band_vector",
    "decode_feed_payload",
    "decode_feed_record",
    "deinterleave",
    "extract_channel",
    "extract_channels",
]
