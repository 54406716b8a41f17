"""Shared helper utilities."""

from .immutables import _freeze_dict, _freeze_value, readonly_array

__all__ = ["_freeze_dict", "_freeze_value", "readonly_array"]
