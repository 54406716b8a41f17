"""Band decoding for the multiplexed spectral channel field.

Each feed record carries every optical channel reading in a single packed
string (``"412.0,398.5,..."``).  :func:`decode_band_vector` turns that
string into a fixed-length vector so that the series builder can rely on a
constant stride, whatever the upstream logger managed to send.  Channels
are grouped into named bands purely for display; :class:`BandLayout`
describes that grouping and is validated against the channel count.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Mapping, Sequence

import numpy as np

from ..errors import ChannelLayoutError

__all__ = [
    "Band",
    "BandLayout",
    "Channel",
    "DEFAULT_BAND_LAYOUT",
    "DEFAULT_CHANNEL_COUNT",
    "DEFAULT_DELIMITER",
    "decode_band_vector",
]


DEFAULT_CHANNEL_COUNT = 18
DEFAULT_DELIMITER = ","


def _parse_token(token: str) -> float:
    stripped = token.strip()
    if not stripped:
        return math.nan
    try:
        return float(stripped)
    except ValueError:
        return math.nan


def decode_band_vector(
    packed: str | None,
    channel_count: int = DEFAULT_CHANNEL_COUNT,
    *,
    delimiter: str = DEFAULT_DELIMITER,
) -> np.ndarray:
    """Decode ``packed`` into a read-only vector of exactly ``channel_count`` floats.

    Short payloads are right-padded with ``NaN`` and long payloads keep
    their first ``channel_count`` readings.  Missing payloads and tokens
    that do not parse as numbers become ``NaN``; this function never raises
    for malformed data.
    """

    if channel_count <= 0:
        raise ChannelLayoutError(f"channel_count must be positive, got {channel_count!r}")
    vector = np.full(channel_count, np.nan, dtype=np.float64)
    if packed is None:
        vector.setflags(write=False)
        return vector
    text = str(packed)
    if text.strip():
        tokens = text.split(delimiter)[:channel_count]
        for index, token in enumerate(tokens):
            vector[index] = _parse_token(token)
    vector.setflags(write=False)
    return vector


@dataclass(frozen=True, slots=True)
class Channel:
    """Single optical channel inside a band."""

    index: int
    name: str
    color: str


@dataclass(frozen=True, slots=True)
class Band:
    """Display grouping of channels sharing a spectral region."""

    key: str
    title: str
    channels: tuple[Channel, ...]

    @property
    def channel_names(self) -> tuple[str, ...]:
        return tuple(channel.name for channel in self.channels)


@dataclass(frozen=True, slots=True)
class BandLayout:
    """Ordered collection of bands covering every channel index once."""

    bands: tuple[Band, ...]

    def __iter__(self) -> Iterator[Band]:
        return iter(self.bands)

    def channels(self) -> tuple[Channel, ...]:
        """Return all channels sorted by their index in the packed string."""

        collected = [channel for band in self.bands for channel in band.channels]
        return tuple(sorted(collected, key=lambda channel: channel.index))

    @property
    def channel_count(self) -> int:
        return sum(len(band.channels) for band in self.bands)

    def band_map(self) -> Mapping[str, tuple[str, ...]]:
        return {band.key: band.channel_names for band in self.bands}

    def validate(self, channel_count: int) -> None:
        """Raise :class:`ChannelLayoutError` unless indices cover ``0..channel_count-1``."""

        indices = [channel.index for channel in self.channels()]
        names = [channel.name for channel in self.channels()]
        if len(set(names)) != len(names):
            raise ChannelLayoutError(f"Duplicate channel names in band layout: {names!r}")
        if indices != list(range(channel_count)):
            raise ChannelLayoutError(
                f"Band layout covers channel indices {indices!r}; "
                f"expected exactly 0..{channel_count - 1}"
            )

    @classmethod
    def from_spec(
        cls, spec: Sequence[tuple[str, str, Sequence[tuple[str, str]]]]
    ) -> "BandLayout":
        """Build a layout from ``(key, title, [(name, color), ...])`` triples.

        Channel indices are assigned sequentially in declaration order.
        """

        bands: list[Band] = []
        index = 0
        for key, title, members in spec:
            channels: list[Channel] = []
            for name, color in members:
                channels.append(Channel(index=index, name=name, color=color))
                index += 1
            bands.append(Band(key=key, title=title, channels=tuple(channels)))
        return cls(bands=tuple(bands))


DEFAULT_BAND_LAYOUT = BandLayout.from_spec(
    (
        ("blue", "Tear film / surface scatter", (("A", "#1d4ed8"), ("B", "#7e22ce"), ("C", "#701a75"))),
        (
            "green",
            "Blood perfusion",
            (("D", "#dc2626"), ("E", "#ea580c"), ("F", "#84cc16"), ("G", "#10b981")),
        ),
        ("red", "Eye redness / hemoglobin", (("H", "#0891b2"), ("R", "#dc2626"), ("I", "#db2777"))),
        ("deep_red", "Blood volume", (("S", "#9333ea"), ("J", "#dc2626"))),
        ("nir_1", "Tissue penetration", (("T", "#65a30d"), ("U", "#059669"), ("V", "#0d9488"))),
        ("nir_2", "Water hydration", (("W", "#2563eb"), ("K", "#e11d48"), ("L", "#9333ea"))),
    )
)
