"""Dashboard monitor combining the telemetry and prediction pollers.

Each poller owns exactly one piece of state: the telemetry poller replaces
the :class:`SeriesSnapshot`, the prediction poller replaces the
:class:`PredictionResult`.  After either apply step the monitor builds a
fresh immutable :class:`DashboardView` and hands it to its listeners.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from types import TracebackType
from typing import Any, Callable, List, Mapping, Sequence

import httpx

from .analysis.indicators import INDICATORS, PredictionResult, merge_indicators
from .analysis.ranges import DEFAULT_NORMAL_RANGES, IndicatorReading, NormalRange, Verdict, classify
from .ingestion.http import PredictionSource, TelemetrySource
from .ingestion.poller import Poller
from .settings import MonitorSettings
from .telemetry.bands import DEFAULT_BAND_LAYOUT, BandLayout
from .telemetry.records import FeedRecord
from .telemetry.series import SeriesSnapshot, TimeSeries, build_series, extract_channels
from .utils.immutables import _freeze_dict

__all__ = ["DashboardView", "Monitor", "ViewListener", "build_view"]


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DashboardView:
    """Everything the presentation layer needs for one render."""

    channels: Mapping[str, TimeSeries]
    flattened: TimeSeries | None
    aux: TimeSeries | None
    bands: Mapping[str, tuple[str, ...]]
    band_titles: Mapping[str, str]
    indicators: Mapping[str, IndicatorReading]
    overall: Verdict
    prediction: str | None
    prediction_error: str | None
    last_aux_value: float | None
    updated_at: datetime

    @property
    def has_telemetry(self) -> bool:
        return bool(self.channels)

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable payload; ``NaN`` readings become ``None``."""

        last_aux = self.last_aux_value
        if last_aux is not None and not math.isfinite(last_aux):
            last_aux = None
        return {
            "updated_at": self.updated_at.isoformat(),
            "overall": self.overall.value,
            "prediction": self.prediction,
            "prediction_error": self.prediction_error,
            "last_aux_value": last_aux,
            "indicators": {name: reading.as_dict() for name, reading in self.indicators.items()},
            "bands": {
                key: {"title": self.band_titles.get(key, key), "channels": list(names)}
                for key, names in self.bands.items()
            },
            "channels": {name: series.as_dict() for name, series in self.channels.items()},
            "flattened": self.flattened.as_dict() if self.flattened is not None else None,
            "aux": self.aux.as_dict() if self.aux is not None else None,
        }


def build_view(
    series: SeriesSnapshot | None,
    prediction: PredictionResult | None,
    *,
    ranges: Mapping[str, NormalRange] = DEFAULT_NORMAL_RANGES,
    layout: BandLayout = DEFAULT_BAND_LAYOUT,
    prediction_error: str | None = None,
) -> DashboardView:
    """Merge, classify and de-interleave the latest snapshots into a view."""

    telemetry_values = series.last_indicator_values if series is not None else None
    merged = merge_indicators(prediction, telemetry_values, INDICATORS)
    classification = classify(merged, ranges, prediction)
    channels: Mapping[str, TimeSeries] = _freeze_dict(
        extract_channels(series, layout) if series is not None else {}
    )
    return DashboardView(
        channels=channels,
        flattened=series.flattened_series() if series is not None else None,
        aux=series.aux_series() if series is not None else None,
        bands=_freeze_dict(layout.band_map()),
        band_titles=_freeze_dict({band.key: band.title for band in layout}),
        indicators=classification.readings,
        overall=classification.overall,
        prediction=prediction.prediction if prediction is not None else None,
        prediction_error=prediction_error,
        last_aux_value=series.last_aux_value if series is not None else None,
        updated_at=datetime.now(timezone.utc),
    )


ViewListener = Callable[[DashboardView], None]


class Monitor:
    """Own the telemetry and prediction pollers and publish dashboard views."""

    def __init__(
        self,
        settings: MonitorSettings,
        *,
        client: httpx.AsyncClient | None = None,
        layout: BandLayout = DEFAULT_BAND_LAYOUT,
    ) -> None:
        layout.validate(settings.channel_count)
        telemetry_url = settings.require_telemetry_url()
        prediction_url = settings.require_prediction_url()
        self.settings = settings
        self.layout = layout
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=settings.timeout)
        self.telemetry_source = TelemetrySource(
            telemetry_url, client=self._client, timeout=settings.timeout
        )
        self.prediction_source = PredictionSource(
            prediction_url, client=self._client, timeout=settings.timeout
        )
        self._series: SeriesSnapshot | None = None
        self._prediction: PredictionResult | None = None
        self._prediction_error: str | None = None
        self._listeners: List[ViewListener] = []
        self._view = self._build_view()
        self.telemetry_poller: Poller[Sequence[FeedRecord]] = Poller(
            "telemetry",
            self.telemetry_source.fetch,
            self.apply_feed,
            interval=settings.poll_interval,
        )
        self.prediction_poller: Poller[PredictionResult] = Poller(
            "prediction",
            self.prediction_source.fetch,
            self.apply_prediction,
            interval=settings.poll_interval,
            on_error=self.record_prediction_error,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def view(self) -> DashboardView:
        return self._view

    @property
    def series(self) -> SeriesSnapshot | None:
        return self._series

    @property
    def prediction(self) -> PredictionResult | None:
        return self._prediction

    def add_listener(self, listener: ViewListener) -> Callable[[], None]:
        """Register ``listener`` for new views and return a function removing it."""

        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def apply_feed(self, records: Sequence[FeedRecord]) -> None:
        snapshot = build_series(
            records, self.settings.channel_count, delimiter=self.settings.delimiter
        )
        if snapshot is None:
            logger.info(
                "Telemetry feed returned no records; keeping previous series.",
                extra={"event": "telemetry.empty"},
            )
            return
        self._series = snapshot
        self._publish()

    def apply_prediction(self, result: PredictionResult) -> None:
        self._prediction = result
        self._prediction_error = None
        self._publish()

    def record_prediction_error(self, exc: BaseException) -> None:
        self._prediction_error = f"Prediction unavailable: {exc}"
        self._publish()

    def _build_view(self) -> DashboardView:
        return build_view(
            self._series,
            self._prediction,
            ranges=self.settings.ranges,
            layout=self.layout,
            prediction_error=self._prediction_error,
        )

    def _publish(self) -> None:
        self._view = self._build_view()
        for listener in list(self._listeners):
            try:
                listener(self._view)
            except Exception:
                logger.exception(
                    "View listener failed.",
                    extra={"event": "monitor.listener_error", "listener": repr(listener)},
                )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def refresh(self) -> DashboardView:
        """Poll both sources once, concurrently, and return the resulting view.

        A fetch already outstanding on a running poller is joined, not repeated.
        """

        await asyncio.gather(
            self.telemetry_poller.poll_now(), self.prediction_poller.poll_now()
        )
        return self._view

    def start(self) -> None:
        self.telemetry_poller.start()
        self.prediction_poller.start()

    async def stop(self) -> None:
        await asyncio.gather(self.telemetry_poller.stop(), self.prediction_poller.stop())

    async def aclose(self) -> None:
        await self.stop()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "Monitor":
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
