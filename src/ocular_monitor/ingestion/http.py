"""HTTP sources for the telemetry feed and the prediction service."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, List, Sequence

import httpx

from ..analysis.indicators import PredictionResult, decode_prediction_payload
from ..errors import SourceError, TelemetryFormatError
from ..telemetry.records import DEFAULT_INDICATOR_FIELDS, FeedRecord, decode_feed_payload

__all__ = [
    "DEFAULT_TIMEOUT",
    "JsonSource",
    "PredictionSource",
    "TelemetrySource",
]


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 10.0


class JsonSource:
    """GET a JSON document from ``url`` using a shared :class:`httpx.AsyncClient`.

    When no client is supplied the source owns one and closes it in
    :meth:`aclose`.
    """

    name = "json"

    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.url = url
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    async def fetch_json(self) -> Any:
        try:
            response = await self._client.get(self.url)
        except httpx.HTTPError as exc:
            raise SourceError(
                f"{self.name} request to {self.url} failed: {exc}", url=self.url
            ) from exc
        if not response.is_success:
            raise SourceError(
                f"{self.name} request to {self.url} returned HTTP {response.status_code}",
                url=self.url,
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TelemetryFormatError(
                f"{self.name} response from {self.url} is not valid JSON"
            ) from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "JsonSource":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


class TelemetrySource(JsonSource):
    """Telemetry channel feed returning ``{"feeds": [...]}``."""

    name = "telemetry"

    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        indicator_fields: Sequence[str] = DEFAULT_INDICATOR_FIELDS,
    ) -> None:
        super().__init__(url, client=client, timeout=timeout)
        self.indicator_fields = tuple(indicator_fields)

    async def fetch(self) -> List[FeedRecord]:
        payload = await self.fetch_json()
        records = decode_feed_payload(payload, indicator_fields=self.indicator_fields)
        logger.debug(
            "Telemetry feed decoded.",
            extra={"event": "telemetry.decoded", "records": len(records), "url": self.url},
        )
        return records


class PredictionSource(JsonSource):
    """Prediction service returning ``{"latest_values": [...], "prediction": ...}``."""

    name = "prediction"

    async def fetch(self) -> PredictionResult:
        payload = await self.fetch_json()
        return decode_prediction_payload(payload)
