"""Ocular sensor telemetry monitor.

The package polls a multiplexed spectral telemetry feed together with an
external prediction service, de-interleaves the optical channels into
per-channel time series and classifies six clinical indicators against
their normal ranges.
"""

from ._version import __version__
from .analysis import (
    DEFAULT_NORMAL_RANGES,
    INDICATOR_NAMES,
    IndicatorReading,
    NormalRange,
    PredictionResult,
    Verdict,
    classify,
    merge_indicators,
)
from .errors import (
    ChannelLayoutError,
    ConfigurationError,
    OcularMonitorError,
    SourceError,
    TelemetryFormatError,
)
from .ingestion import Poller, PollerState, PredictionSource, TelemetrySource
from .monitor import DashboardView, Monitor, build_view
from .settings import MonitorSettings
from .telemetry import (
    DEFAULT_BAND_LAYOUT,
    DEFAULT_CHANNEL_COUNT,
    BandLayout,
    FeedRecord,
    SeriesSnapshot,
    TimeSeries,
    build_series,
    decode_band_vector,
    extract_channel,
    extract_channels,
)

__all__ = [
    "BandLayout",
    "ChannelLayoutError",
    "ConfigurationError",
    "DEFAULT_BAND_LAYOUT",
    "DEFAULT_CHANNEL_COUNT",
    "DEFAULT_NORMAL_RANGES",
    "DashboardView",
    "FeedRecord",
    "INDICATOR_NAMES",
    "IndicatorReading",
    "Monitor",
    "MonitorSettings",
    "NormalRange",
    "OcularMonitorError",
    "Poller",
    "PollerState",
    "PredictionResult",
    "PredictionSource",
    "SeriesSnapshot",
    "SourceError",
    "TelemetryFormatError",
    "TelemetrySource",
    "TimeSeries",
    "Verdict",
    "__version__",
    "build_series",
    "build_view",
    "classify",
    "decode_band_vector",
    "extract_channel",
    "extract_channels",
    "merge_indicators",
]
