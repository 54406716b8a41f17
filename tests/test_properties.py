"""Property checks for band decoding and channel extraction."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import numpy.testing as npt
import pytest

pytest.importorskip("hypothesis")
from hypothesis import given, settings
from hypothesis import strategies as st

from ocular_monitor.telemetry.bands import DEFAULT_CHANNEL_COUNT, decode_band_vector
from ocular_monitor.telemetry.records import FeedRecord
from ocular_monitor.telemetry.series import build_series, extract_channel

_START = datetime(2025, 3, 1, tzinfo=timezone.utc)

_packed = st.one_of(
    st.none(),
    st.text(max_size=80),
    st.lists(
        st.one_of(st.floats(allow_nan=False, allow_infinity=False), st.sampled_from(["", "x", " "])),
        max_size=30,
    ).map(lambda items: ",".join(str(item) for item in items)),
)


def _record(position: int, packed: str | None) -> FeedRecord:
    return FeedRecord(
        created_at=_START + timedelta(seconds=15 * position),
        channel_packed=packed,
        aux_scalar=float(position),
        indicator_raw=(),
    )


@settings(max_examples=75, deadline=None)
@given(packed=_packed, channel_count=st.integers(min_value=1, max_value=24))
def test_band_vector_always_has_channel_count_entries(packed, channel_count) -> None:
    vector = decode_band_vector(packed, channel_count)

    assert vector.shape == (channel_count,)
    npt.assert_array_equal(vector, decode_band_vector(packed, channel_count))


@settings(max_examples=50, deadline=None)
@given(history=st.lists(_packed, min_size=1, max_size=12))
def test_flattened_length_matches_record_count(history) -> None:
    snapshot = build_series([_record(i, packed) for i, packed in enumerate(history)])

    assert snapshot is not None
    assert len(snapshot.flattened) == len(history) * DEFAULT_CHANNEL_COUNT
    assert len(snapshot.timestamps) == len(history)


@settings(max_examples=40, deadline=None)
@given(
    record_count=st.integers(min_value=1, max_value=10),
    index=st.integers(min_value=0, max_value=DEFAULT_CHANNEL_COUNT - 1),
)
def test_extracted_channel_recovers_each_record(record_count, index) -> None:
    records = [
        _record(i, ",".join(str(i * 100 + k) for k in range(DEFAULT_CHANNEL_COUNT)))
        for i in range(record_count)
    ]
    snapshot = build_series(records)

    series = extract_channel(snapshot, index)

    expected = np.array([i * 100 + index for i in range(record_count)], dtype=float)
    npt.assert_array_equal(series.values, expected)
    npt.assert_array_equal(series.timestamps, snapshot.timestamps)
