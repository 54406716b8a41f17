"""Indicator definitions, prediction payloads and the indicator merger."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Sequence

from ..errors import TelemetryFormatError
from ..telemetry.records import (
    DEFAULT_INDICATOR_FIELDS,
    INDICATOR_DELIMITER,
    IndicatorScalar,
    coerce_scalar,
)

__all__ = [
    "INDICATOR_NAMES",
    "Indicator",
    "INDICATORS",
    "PredictionResult",
    "decode_prediction_payload",
    "merge_indicators",
]


@dataclass(frozen=True, slots=True)
class Indicator:
    """Clinical indicator bound to a fixed feed field and prediction slot."""

    index: int
    name: str
    field: str


INDICATOR_NAMES: tuple[str, ...] = (
    "Eye Redness",
    "Tear Film",
    "Blood Perfusion",
    "Oxygenation",
    "Tissue",
    "Hydration",
)

if len(INDICATOR_NAMES) != len(DEFAULT_INDICATOR_FIELDS):  # pragma: no cover - import guard
    raise ImportError("Indicator names and feed fields must have the same length")

INDICATORS: tuple[Indicator, ...] = tuple(
    Indicator(index=index, name=name, field=field)
    for index, (name, field) in enumerate(zip(INDICATOR_NAMES, DEFAULT_INDICATOR_FIELDS))
)


@dataclass(frozen=True, slots=True)
class PredictionResult:
    """Latest output of the external prediction service."""

    latest_values: tuple[IndicatorScalar, ...]
    prediction: str | None = None

    @property
    def is_abnormal(self) -> bool:
        return (self.prediction or "").strip().lower() == "abnormal"

    def value_at(self, index: int) -> IndicatorScalar:
        if 0 <= index < len(self.latest_values):
            return self.latest_values[index]
        return None


def _split_latest_values(raw: Any) -> Sequence[Any]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        # Same packed form as the feed's indicator field.
        return raw.split(INDICATOR_DELIMITER) if raw.strip() else ()
    if isinstance(raw, (list, tuple)):
        return raw
    raise TelemetryFormatError(
        f"'latest_values' must be a list or a delimited string, got {type(raw).__name__}"
    )


def decode_prediction_payload(payload: Any) -> PredictionResult:
    """Map a prediction response body to :class:`PredictionResult`."""

    if not isinstance(payload, Mapping):
        raise TelemetryFormatError(
            f"Prediction body must be a JSON object, got {type(payload).__name__}"
        )
    values = tuple(coerce_scalar(value) for value in _split_latest_values(payload.get("latest_values")))
    prediction = payload.get("prediction")
    return PredictionResult(
        latest_values=values,
        prediction=None if prediction is None else str(prediction).strip(),
    )


def merge_indicators(
    prediction: PredictionResult | None,
    telemetry_values: Sequence[IndicatorScalar] | None,
    indicators: Sequence[Indicator] = INDICATORS,
) -> Mapping[str, IndicatorScalar]:
    """Return one value per indicator name.

    Each slot prefers the prediction value, then the telemetry carry-forward
    value at the same position, and is ``None`` when neither is known.
    """

    telemetry = tuple(telemetry_values or ())
    merged: Dict[str, IndicatorScalar] = {}
    for indicator in indicators:
        value: IndicatorScalar = None
        if prediction is not None:
            value = prediction.value_at(indicator.index)
        if value is None and indicator.index < len(telemetry):
            value = telemetry[indicator.index]
        merged[indicator.name] = value
    return merged
