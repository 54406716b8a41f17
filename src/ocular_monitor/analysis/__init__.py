"""Indicator merging and normal-range classification."""

from __future__ import annotations

from .indicators import (
    INDICATOR_NAMES,
    INDICATORS,
    Indicator,
    PredictionResult,
    decode_prediction_payload,
    merge_indicators,
)
from .ranges import (
    DEFAULT_NORMAL_RANGES,
    Classification,
    IndicatorReading,
    NormalRange,
    Verdict,
    classify,
    classify_value,
    ranges_from_config,
)

__all__ = [
    "Classification",
    "DEFAULT_NORMAL_RANGES",
    "INDICATORS",
    "INDICATOR_NAMES",
    "Indicator",
    "IndicatorReading",
    "NormalRange",
    "PredictionResult",
    "Verdict",
    "classify",
    "classify_value",
    "decode_prediction_payload",
    "merge_indicators",
    "ranges_from_config",
]
