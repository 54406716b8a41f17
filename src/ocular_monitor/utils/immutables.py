"""Helpers to transform mutable containers into immutable counterparts."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import numpy as np

__all__ = ["_freeze_value", "_freeze_dict", "readonly_array"]


_EMPTY_MAPPING = MappingProxyType({})


def _freeze_value(value: Any) -> Any:
    """Recursively convert mutable containers into immutable counterparts."""

    if isinstance(value, Mapping):
        return MappingProxyType({str(key): _freeze_value(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze_value(item) for item in value)
    if isinstance(value, np.ndarray):
        return readonly_array(value)
    return value


def _freeze_dict(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return an immutable view for a mapping, freezing nested structures."""

    if not payload:
        return _EMPTY_MAPPING
    return MappingProxyType({str(key): _freeze_value(value) for key, value in payload.items()})


def readonly_array(values: Any, dtype: Any = None) -> np.ndarray:
    """Return ``values`` as a numpy array that rejects in-place writes."""

    array = np.array(values, dtype=dtype, copy=True)
    array.setflags(write=False)
    return array
