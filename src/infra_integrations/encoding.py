"""Deterministic JSON encoding of integration payloads."""

from __future__ import annotations

import json
from typing import Any

# Integral floats at or above this magnitude keep their float form.
_INTEGRAL_LIMIT = 1e21


def _normalize(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer() and abs(value) < _INTEGRAL_LIMIT:
        return int(value)
    if isinstance(value, dict):
        return {str(key): _normalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    return value


def dumps(payload: Any, *, pretty: bool = False) -> str:
    """Encode ``payload`` with lexicographically sorted keys.

    Integral floats are written without a fractional part (``0.0`` -> ``0``),
    so identical logical content always yields identical bytes. NaN and
    infinities raise ``ValueError``.
    """

    normalized = _normalize(payload)
    if pretty:
        return json.dumps(normalized, sort_keys=True, indent=2, allow_nan=False, ensure_ascii=False)
    return json.dumps(
        normalized, sort_keys=True, separators=(",", ":"), allow_nan=False, ensure_ascii=False
    )


__all__ = ["dumps"]
