"""Tests for band decoding and channel layouts."""

from __future__ import annotations

import math

import numpy as np
import pytest

from ocular_monitor.errors import ChannelLayoutError
from ocular_monitor.telemetry.bands import (
    DEFAULT_BAND_LAYOUT,
    BandLayout,
    decode_band_vector,
)


def test_short_packed_string_is_right_padded_with_nan() -> None:
    vector = decode_band_vector("1,2,3", 18)

    assert vector.shape == (18,)
    assert vector[:3].tolist() == [1.0, 2.0, 3.0]
    assert np.isnan(vector[3:]).all()


def test_long_packed_string_keeps_first_channels() -> None:
    packed = ",".join(str(value) for value in range(25))

    vector = decode_band_vector(packed, 18)

    assert vector.tolist() == [float(value) for value in range(18)]


@pytest.mark.parametrize("packed", [None, "", "   "])
def test_missing_packed_string_yields_all_nan(packed) -> None:
    vector = decode_band_vector(packed, 18)

    assert len(vector) == 18
    assert np.isnan(vector).all()


def test_unparsable_tokens_become_nan_without_raising() -> None:
    vector = decode_band_vector("4.5,abc,,7e1, 8 ", 6)

    assert vector[0] == 4.5
    assert math.isnan(vector[1])
    assert math.isnan(vector[2])
    assert vector[3] == 70.0
    assert vector[4] == 8.0
    assert math.isnan(vector[5])


def test_decoding_is_repeatable_and_read_only() -> None:
    first = decode_band_vector("10,x,30", 18)
    second = decode_band_vector("10,x,30", 18)

    np.testing.assert_array_equal(first, second)
    with pytest.raises(ValueError):
        first[0] = 0.0


def test_custom_delimiter() -> None:
    vector = decode_band_vector("1;2", 3, delimiter=";")

    assert vector[:2].tolist() == [1.0, 2.0]


def test_channel_count_must_be_positive() -> None:
    with pytest.raises(ChannelLayoutError):
        decode_band_vector("1,2", 0)


def test_default_layout_covers_eighteen_channels_in_order() -> None:
    DEFAULT_BAND_LAYOUT.validate(18)
    names = [channel.name for channel in DEFAULT_BAND_LAYOUT.channels()]

    assert DEFAULT_BAND_LAYOUT.channel_count == 18
    assert names[:4] == ["A", "B", "C", "D"]
    assert names[-3:] == ["W", "K", "L"]
    assert DEFAULT_BAND_LAYOUT.band_map()["deep_red"] == ("S", "J")


def test_layout_mismatch_is_a_configuration_error() -> None:
    with pytest.raises(ChannelLayoutError):
        DEFAULT_BAND_LAYOUT.validate(17)


def test_layout_rejects_duplicate_channel_names() -> None:
    layout = BandLayout.from_spec(
        (("one", "One", (("A", "#000"),)), ("two", "Two", (("A", "#fff"),)))
    )

    with pytest.raises(ChannelLayoutError):
        layout.validate(2)
