"""Exception hierarchy shared by the ingestion and analysis layers."""

from __future__ import annotations

__all__ = [
    "ChannelLayoutError",
    "ConfigurationError",
    "OcularMonitorError",
    "SourceError",
    "TelemetryFormatError",
]


class OcularMonitorError(Exception):
    """Base class for every error raised by :mod:`ocular_monitor`."""


class TelemetryFormatError(OcularMonitorError, ValueError):
    """Raised when an upstream payload cannot be mapped to the expected shape."""


class ChannelLayoutError(OcularMonitorError, ValueError):
    """Raised when channel count, stride or band layout disagree."""


class ConfigurationError(OcularMonitorError, ValueError):
    """Raised when configuration values are missing or invalid."""


class SourceError(OcularMonitorError):
    """Transport failure or non-success response from a polled source."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
