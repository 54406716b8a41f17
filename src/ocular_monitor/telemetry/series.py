"""Series building and channel de-interleaving for telemetry histories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Sequence

import numpy as np

from ..errors import ChannelLayoutError
from ..utils.immutables import readonly_array
from .bands import DEFAULT_BAND_LAYOUT, DEFAULT_CHANNEL_COUNT, DEFAULT_DELIMITER, BandLayout, decode_band_vector
from .records import FeedRecord, IndicatorScalar

__all__ = [
    "AUX_SERIES_COLOR",
    "AUX_SERIES_LABEL",
    "FLATTENED_SERIES_COLOR",
    "FLATTENED_SERIES_LABEL",
    "SeriesSnapshot",
    "TimeSeries",
    "build_series",
    "deinterleave",
    "extract_channel",
    "extract_channels",
]


FLATTENED_SERIES_LABEL = "CLEAR VALUE"
FLATTENED_SERIES_COLOR = "blue"
AUX_SERIES_LABEL = "NIR"
AUX_SERIES_COLOR = "red"


@dataclass(frozen=True, slots=True)
class TimeSeries:
    """Aligned millisecond timestamps and values with display metadata."""

    timestamps: np.ndarray
    values: np.ndarray
    label: str
    color: str

    def __post_init__(self) -> None:
        if len(self.timestamps) != len(self.values):
            raise ChannelLayoutError(
                f"Series '{self.label}' has {len(self.timestamps)} timestamps "
                f"but {len(self.values)} values"
            )

    def __len__(self) -> int:
        return len(self.timestamps)

    def as_dict(self) -> dict[str, object]:
        return {
            "label": self.label,
            "color": self.color,
            "timestamps": [int(stamp) for stamp in self.timestamps],
            "values": [float(value) if np.isfinite(value) else None for value in self.values],
        }


@dataclass(frozen=True, slots=True)
class SeriesSnapshot:
    """Everything derived from one successful telemetry poll.

    ``flattened`` holds every record's band vector back to back, so its
    length is always ``len(timestamps) * channel_count``.
    ``last_indicator_values`` is positional and follows the configured
    indicator field order.
    """

    timestamps: np.ndarray
    flattened: np.ndarray
    aux: np.ndarray
    last_indicator_values: tuple[IndicatorScalar, ...]
    last_aux_value: float | None
    channel_count: int

    @property
    def record_count(self) -> int:
        return len(self.timestamps)

    def flattened_series(self) -> TimeSeries:
        # The flattened series is sampled channel_count times per timestamp,
        # so it is exposed against a repeated time axis.
        return TimeSeries(
            timestamps=readonly_array(np.repeat(self.timestamps, self.channel_count)),
            values=self.flattened,
            label=FLATTENED_SERIES_LABEL,
            color=FLATTENED_SERIES_COLOR,
        )

    def aux_series(self) -> TimeSeries:
        return TimeSeries(
            timestamps=self.timestamps,
            values=self.aux,
            label=AUX_SERIES_LABEL,
            color=AUX_SERIES_COLOR,
        )


def build_series(
    records: Sequence[FeedRecord],
    channel_count: int = DEFAULT_CHANNEL_COUNT,
    *,
    delimiter: str = DEFAULT_DELIMITER,
) -> SeriesSnapshot | None:
    """Fold ``records`` (oldest first) into a :class:`SeriesSnapshot`.

    Returns ``None`` for an empty history so callers keep their previous
    snapshot instead of blanking it.
    """

    if not records:
        return None

    timestamps = np.fromiter(
        (record.timestamp_ms for record in records), dtype=np.int64, count=len(records)
    )
    flattened = np.concatenate(
        [
            decode_band_vector(record.channel_packed, channel_count, delimiter=delimiter)
            for record in records
        ]
    )
    aux = np.fromiter(
        (record.aux_scalar for record in records), dtype=np.float64, count=len(records)
    )

    width = max(len(record.indicator_raw) for record in records)
    carried: list[IndicatorScalar] = [None] * width
    for record in records:
        for index, value in enumerate(record.indicator_raw):
            if value is not None:
                carried[index] = value

    return SeriesSnapshot(
        timestamps=readonly_array(timestamps),
        flattened=readonly_array(flattened),
        aux=readonly_array(aux),
        last_indicator_values=tuple(carried),
        last_aux_value=records[-1].aux_raw,
        channel_count=channel_count,
    )


def deinterleave(
    flattened: np.ndarray,
    timestamps: Sequence[int] | np.ndarray,
    index: int,
    channel_count: int = DEFAULT_CHANNEL_COUNT,
) -> np.ndarray:
    """Slice channel ``index`` out of a flattened multi-channel series."""

    if not 0 <= index < channel_count:
        raise ChannelLayoutError(f"Channel index {index} outside [0, {channel_count})")
    record_count = len(timestamps)
    expected = record_count * channel_count
    if len(flattened) != expected:
        raise ChannelLayoutError(
            f"Flattened series has {len(flattened)} readings; "
            f"expected {record_count} records x {channel_count} channels = {expected}"
        )
    stacked = np.asarray(flattened, dtype=np.float64).reshape(record_count, channel_count)
    return readonly_array(stacked[:, index])


def extract_channel(
    snapshot: SeriesSnapshot,
    index: int,
    *,
    label: str | None = None,
    color: str = "",
) -> TimeSeries:
    """Return the series of channel ``index`` by fixed-stride de-interleaving.

    ``values[i]`` is ``flattened[i * channel_count + index]``.
    """

    values = deinterleave(
        snapshot.flattened, snapshot.timestamps, index, snapshot.channel_count
    )
    return TimeSeries(
        timestamps=snapshot.timestamps,
        values=values,
        label=label if label is not None else f"channel-{index}",
        color=color,
    )


def extract_channels(
    snapshot: SeriesSnapshot,
    layout: BandLayout = DEFAULT_BAND_LAYOUT,
) -> Mapping[str, TimeSeries]:
    """Return one :class:`TimeSeries` per channel name declared in ``layout``."""

    layout.validate(snapshot.channel_count)
    series: Dict[str, TimeSeries] = {}
    for channel in layout.channels():
        series[channel.name] = extract_channel(
            snapshot, channel.index, label=channel.name, color=channel.color
        )
    return series
