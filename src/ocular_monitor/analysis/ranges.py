"""Normal ranges and verdicts for the clinical indicators."""

from __future__ import annotations

import math
from collections.abc import Mapping as ABCMapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping

from ..errors import ConfigurationError
from ..telemetry.records import IndicatorScalar
from .indicators import INDICATOR_NAMES, PredictionResult

__all__ = [
    "Classification",
    "DEFAULT_NORMAL_RANGES",
    "IndicatorReading",
    "NormalRange",
    "Verdict",
    "classify",
    "classify_value",
    "ranges_from_config",
]


class Verdict(str, Enum):
    NORMAL = "Normal"
    ABNORMAL = "Abnormal"


@dataclass(frozen=True, slots=True)
class NormalRange:
    """Inclusive ``[minimum, maximum]`` interval; ``maximum=None`` is open-ended."""

    minimum: float
    maximum: float | None = None
    unit: str = ""

    def __post_init__(self) -> None:
        if self.maximum is not None and self.maximum < self.minimum:
            raise ConfigurationError(
                f"Normal range maximum {self.maximum} is below minimum {self.minimum}"
            )

    def contains(self, value: float) -> bool:
        if value < self.minimum:
            return False
        return self.maximum is None or value <= self.maximum

    def describe(self) -> str:
        suffix = f" {self.unit}" if self.unit else ""
        if self.maximum is None:
            return f">= {self.minimum:g}{suffix}"
        return f"{self.minimum:g}-{self.maximum:g}{suffix}"


DEFAULT_NORMAL_RANGES: Mapping[str, NormalRange] = MappingProxyType(
    {
        "Eye Redness": NormalRange(0.0, 30.0, "%"),
        "Tear Film": NormalRange(10.0, None, "s"),
        "Blood Perfusion": NormalRange(0.2, 20.0, "%"),
        "Oxygenation": NormalRange(95.0, 100.0, "%"),
        "Tissue": NormalRange(60.0, 80.0, "%"),
        "Hydration": NormalRange(40.0, 60.0, "%"),
    }
)


@dataclass(frozen=True, slots=True)
class IndicatorReading:
    name: str
    value: IndicatorScalar
    verdict: Verdict
    normal_range: NormalRange | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "verdict": self.verdict.value,
            "range": self.normal_range.describe() if self.normal_range else None,
        }


@dataclass(frozen=True, slots=True)
class Classification:
    readings: Mapping[str, IndicatorReading]
    overall: Verdict

    @property
    def abnormal_indicators(self) -> tuple[str, ...]:
        return tuple(
            name for name, reading in self.readings.items() if reading.verdict is Verdict.ABNORMAL
        )


def classify_value(value: IndicatorScalar, normal_range: NormalRange | None) -> Verdict:
    """Classify ``value``; unknown ranges or non-numeric values are neutral."""

    if normal_range is None or value is None or isinstance(value, str):
        return Verdict.NORMAL
    numeric = float(value)
    if not math.isfinite(numeric):
        return Verdict.NORMAL
    return Verdict.NORMAL if normal_range.contains(numeric) else Verdict.ABNORMAL


def classify(
    values: Mapping[str, IndicatorScalar],
    ranges: Mapping[str, NormalRange] = DEFAULT_NORMAL_RANGES,
    prediction: PredictionResult | None = None,
) -> Classification:
    """Classify every merged indicator and derive the overall verdict.

    The overall verdict is abnormal when any indicator is out of range or
    the prediction service reports ``"Abnormal"``.  A ``"Normal"``
    prediction never clears a locally detected abnormal value.
    """

    readings: Dict[str, IndicatorReading] = {}
    for name, value in values.items():
        normal_range = ranges.get(name)
        readings[name] = IndicatorReading(
            name=name,
            value=value,
            verdict=classify_value(value, normal_range),
            normal_range=normal_range,
        )
    abnormal = any(reading.verdict is Verdict.ABNORMAL for reading in readings.values())
    if prediction is not None and prediction.is_abnormal:
        abnormal = True
    return Classification(
        readings=MappingProxyType(readings),
        overall=Verdict.ABNORMAL if abnormal else Verdict.NORMAL,
    )


def _coerce_bound(name: str, key: str, value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"Range '{name}.{key}' must be numeric, got {value!r}")
    try:
        numeric = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Range '{name}.{key}' must be numeric, got {value!r}") from exc
    if math.isinf(numeric) and key == "max":
        return None
    if not math.isfinite(numeric):
        raise ConfigurationError(f"Range '{name}.{key}' must be finite, got {value!r}")
    return numeric


def ranges_from_config(
    overrides: Mapping[str, Any] | None,
    base: Mapping[str, NormalRange] = DEFAULT_NORMAL_RANGES,
) -> Mapping[str, NormalRange]:
    """Overlay ``[ranges]`` tables onto ``base``.

    Each table accepts ``min``, ``max`` and ``unit``; omitted keys keep the
    base value and an omitted ``max`` on a new indicator means open-ended.
    """

    merged: Dict[str, NormalRange] = dict(base)
    if not overrides:
        return MappingProxyType(merged)
    for name, table in overrides.items():
        if name not in INDICATOR_NAMES:
            raise ConfigurationError(
                f"Unknown indicator '{name}' in ranges; expected one of {list(INDICATOR_NAMES)!r}"
            )
        if not isinstance(table, ABCMapping):
            raise ConfigurationError(f"Range '{name}' must be a table, got {table!r}")
        current = merged.get(name)
        minimum = _coerce_bound(name, "min", table.get("min"))
        if minimum is None:
            if current is None:
                raise ConfigurationError(f"Range '{name}' requires a 'min' value")
            minimum = current.minimum
        if "max" in table:
            maximum = _coerce_bound(name, "max", table.get("max"))
        else:
            maximum = current.maximum if current is not None else None
        unit = str(table.get("unit", current.unit if current is not None else ""))
        merged[name] = NormalRange(minimum, maximum, unit)
    return MappingProxyType(merged)
