"""Runtime settings parsed from the ``[tool.ocular_monitor]`` table."""

from __future__ import annotations

import math
from collections.abc import Mapping as ABCMapping
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlsplit

from .analysis.ranges import DEFAULT_NORMAL_RANGES, NormalRange, ranges_from_config
from .errors import ChannelLayoutError, ConfigurationError
from .ingestion.http import DEFAULT_TIMEOUT
from .ingestion.poller import DEFAULT_POLL_INTERVAL
from .telemetry.bands import DEFAULT_BAND_LAYOUT, DEFAULT_CHANNEL_COUNT, DEFAULT_DELIMITER


DEFAULT_PREDICTION_PATH = "/api/predict"


def _is_absolute(url: str) -> bool:
    parts = urlsplit(url)
    return bool(parts.scheme and parts.netloc)


@dataclass(frozen=True, slots=True)
class MonitorSettings:
    """Immutable configuration for the monitor and its pollers."""

    telemetry_url: str | None = None
    prediction_url: str = DEFAULT_PREDICTION_PATH
    base_url: str | None = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    timeout: float = DEFAULT_TIMEOUT
    channel_count: int = DEFAULT_CHANNEL_COUNT
    delimiter: str = DEFAULT_DELIMITER
    ranges: Mapping[str, NormalRange] = field(default_factory=lambda: DEFAULT_NORMAL_RANGES)

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ConfigurationError(f"poll_interval must be positive, got {self.poll_interval!r}")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout!r}")
        if not self.delimiter:
            raise ConfigurationError("delimiter must not be empty")
        try:
            DEFAULT_BAND_LAYOUT.validate(self.channel_count)
        except ChannelLayoutError as exc:
            raise ConfigurationError(
                f"channel_count {self.channel_count} does not match the band layout: {exc}"
            ) from exc

    def require_telemetry_url(self) -> str:
        if not self.telemetry_url:
            raise ConfigurationError("telemetry_url is not configured")
        return self.telemetry_url

    def require_prediction_url(self) -> str:
        """Return the prediction URL, joined onto ``base_url`` when relative."""

        if _is_absolute(self.prediction_url):
            return self.prediction_url
        if not self.base_url:
            raise ConfigurationError(
                f"prediction_url {self.prediction_url!r} is relative; set base_url"
            )
        return self.base_url.rstrip("/") + "/" + self.prediction_url.lstrip("/")

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None = None) -> "MonitorSettings":
        """Coerce a raw configuration mapping into settings.

        Sources are read from the ``[sources]`` table and polling knobs from
        ``[polling]``; top-level keys of the same name are accepted as a
        flat alternative.
        """

        def _as_mapping(value: Any) -> Mapping[str, Any]:
            if isinstance(value, ABCMapping):
                return value
            return {}

        def _coerce_float(key: str, value: Any, fallback: float) -> float:
            if value is None:
                return fallback
            try:
                numeric = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"{key} must be a number, got {value!r}") from exc
            if not math.isfinite(numeric):
                raise ConfigurationError(f"{key} must be finite, got {value!r}")
            return numeric

        def _coerce_int(key: str, value: Any, fallback: int) -> int:
            if value is None:
                return fallback
            if isinstance(value, bool):
                raise ConfigurationError(f"{key} must be an integer, got {value!r}")
            try:
                return int(value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"{key} must be an integer, got {value!r}") from exc

        payload = _as_mapping(config)
        sources = _as_mapping(payload.get("sources"))
        polling = _as_mapping(payload.get("polling"))

        def _pick(table: Mapping[str, Any], key: str) -> Any:
            value = table.get(key)
            return payload.get(key) if value is None else value

        telemetry_url = _pick(sources, "telemetry_url")
        prediction_url = _pick(sources, "prediction_url")
        base_url = _pick(sources, "base_url")
        delimiter = _pick(polling, "delimiter")

        return cls(
            telemetry_url=str(telemetry_url) if telemetry_url else None,
            prediction_url=str(prediction_url) if prediction_url else DEFAULT_PREDICTION_PATH,
            base_url=str(base_url) if base_url else None,
            poll_interval=_coerce_float(
                "poll_interval",
                polling.get("interval", payload.get("poll_interval")),
                DEFAULT_POLL_INTERVAL,
            ),
            timeout=_coerce_float("timeout", _pick(polling, "timeout"), DEFAULT_TIMEOUT),
            channel_count=_coerce_int(
                "channel_count", _pick(polling, "channel_count"), DEFAULT_CHANNEL_COUNT
            ),
            delimiter=str(delimiter) if delimiter is not None else DEFAULT_DELIMITER,
            ranges=ranges_from_config(_as_mapping(payload.get("ranges"))),
        )

    def with_overrides(self, **overrides: Any) -> "MonitorSettings":
        """Return a copy with the non-``None`` ``overrides`` applied."""

        values = {
            name: getattr(self, name)
            for name in (
                "telemetry_url",
                "prediction_url",
                "base_url",
                "poll_interval",
                "timeout",
                "channel_count",
                "delimiter",
                "ranges",
            )
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return MonitorSettings(**values)


__all__ = ["DEFAULT_PREDICTION_PATH", "MonitorSettings"]
