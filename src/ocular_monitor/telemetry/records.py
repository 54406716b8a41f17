"""Typed decoding of telemetry feed payloads.

The telemetry logger publishes a channel feed shaped like::

    {"channel": {...}, "feeds": [{"created_at": "...", "entry_id": 7,
                                  "field1": "412.1,398.0,...",
                                  "field2": "36.4", "field3": "12", ...}]}

This module is the only place that reads upstream field names.  Everything
downstream works with :class:`FeedRecord` instances.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Sequence

from ..errors import TelemetryFormatError

__all__ = [
    "AUX_FIELD",
    "CHANNEL_FIELD",
    "DEFAULT_INDICATOR_FIELDS",
    "FeedRecord",
    "INDICATOR_DELIMITER",
    "IndicatorScalar",
    "coerce_scalar",
    "decode_feed_payload",
    "decode_feed_record",
    "parse_timestamp",
]


logger = logging.getLogger(__name__)


CHANNEL_FIELD = "field1"
AUX_FIELD = "field2"
INDICATOR_DELIMITER = ","
DEFAULT_INDICATOR_FIELDS: tuple[str, ...] = (
    "field3",
    "field4",
    "field5",
    "field6",
    "field7",
    "field8",
)

IndicatorScalar = float | str | None


@dataclass(frozen=True, slots=True)
class FeedRecord:
    """One timestamped sample received from the telemetry feed."""

    created_at: datetime
    channel_packed: str | None
    aux_scalar: float
    indicator_raw: tuple[IndicatorScalar, ...]
    entry_id: int | None = None
    aux_raw: float | None = None

    @property
    def timestamp_ms(self) -> int:
        return int(round(self.created_at.timestamp() * 1000))


def coerce_scalar(value: Any) -> IndicatorScalar:
    """Normalise an opaque scalar field.

    ``None``, blank strings and non-finite numbers map to ``None``.  Numbers
    and numeric-looking strings become ``float``; any other text is returned
    stripped.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        numeric = float(value)
        return numeric if math.isfinite(numeric) else None
    text = str(value).strip()
    if not text:
        return None
    try:
        numeric = float(text)
    except ValueError:
        return text
    return numeric if math.isfinite(numeric) else None


def _coerce_aux(value: Any) -> float | None:
    scalar = coerce_scalar(value)
    return scalar if isinstance(scalar, float) else None


def parse_timestamp(value: Any) -> datetime:
    """Parse ISO-8601 strings or epoch seconds into an aware UTC datetime."""

    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(float(value)):
            raise TelemetryFormatError(f"Invalid timestamp {value!r}")
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise TelemetryFormatError(f"Timestamp out of range: {value!r}") from exc
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError as exc:
            raise TelemetryFormatError(f"Invalid timestamp {value!r}") from exc
    else:
        raise TelemetryFormatError(f"Missing timestamp: {value!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    try:
        moment.timestamp()
    except (OverflowError, OSError, ValueError) as exc:
        raise TelemetryFormatError(f"Timestamp out of range: {value!r}") from exc
    return moment


def _coerce_entry_id(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _decode_indicators(
    payload: Mapping[str, Any], indicator_fields: Sequence[str]
) -> tuple[IndicatorScalar, ...]:
    """Read one scalar per indicator field.

    Loggers that publish every indicator as one delimited string in the
    first field, leaving the others empty, are unpacked positionally.
    """

    raw = [payload.get(field) for field in indicator_fields]
    width = len(raw)
    first = raw[0] if raw else None
    if (
        width > 1
        and isinstance(first, str)
        and INDICATOR_DELIMITER in first
        and all(coerce_scalar(value) is None for value in raw[1:])
    ):
        parts = first.split(INDICATOR_DELIMITER)
        if len(parts) != width:
            logger.warning(
                "Packed indicator field does not match the indicator count.",
                extra={
                    "event": "telemetry.indicator_count_mismatch",
                    "field": indicator_fields[0],
                    "expected": width,
                    "received": len(parts),
                },
            )
        raw = (parts + [None] * width)[:width]
    return tuple(coerce_scalar(value) for value in raw)


def decode_feed_record(
    payload: Mapping[str, Any],
    *,
    indicator_fields: Sequence[str] = DEFAULT_INDICATOR_FIELDS,
) -> FeedRecord:
    """Map one upstream feed object to :class:`FeedRecord`.

    Only the timestamp is mandatory; every other field degrades to its
    documented default.
    """

    if not isinstance(payload, Mapping):
        raise TelemetryFormatError(f"Feed entry must be an object, got {type(payload).__name__}")
    created_at = parse_timestamp(payload.get("created_at"))
    packed = payload.get(CHANNEL_FIELD)
    aux = _coerce_aux(payload.get(AUX_FIELD))
    return FeedRecord(
        created_at=created_at,
        channel_packed=None if packed is None else str(packed),
        aux_scalar=0.0 if aux is None else aux,
        indicator_raw=_decode_indicators(payload, indicator_fields),
        entry_id=_coerce_entry_id(payload.get("entry_id")),
        aux_raw=aux,
    )


def decode_feed_payload(
    payload: Any,
    *,
    indicator_fields: Sequence[str] = DEFAULT_INDICATOR_FIELDS,
) -> List[FeedRecord]:
    """Decode a feed response body into records ordered oldest to newest.

    A body without ``feeds`` yields an empty list.  Entries that cannot be
    placed on the time axis are dropped with a warning; a body that is not
    an object, or whose ``feeds`` is not a list, raises
    :class:`TelemetryFormatError`.
    """

    if not isinstance(payload, Mapping):
        raise TelemetryFormatError(
            f"Telemetry body must be a JSON object, got {type(payload).__name__}"
        )
    feeds = payload.get("feeds")
    if feeds is None:
        return []
    if not isinstance(feeds, list):
        raise TelemetryFormatError(
            f"'feeds' must be a list, got {type(feeds).__name__}"
        )
    return list(_decode_entries(feeds, indicator_fields))


def _decode_entries(
    feeds: Iterable[Any], indicator_fields: Sequence[str]
) -> Iterable[FeedRecord]:
    for position, entry in enumerate(feeds):
        try:
            yield decode_feed_record(entry, indicator_fields=indicator_fields)
        except TelemetryFormatError as exc:
            logger.warning(
                "Dropping telemetry feed entry that cannot be decoded.",
                extra={
                    "event": "telemetry.record_dropped",
                    "position": position,
                    "reason": str(exc),
                },
            )
