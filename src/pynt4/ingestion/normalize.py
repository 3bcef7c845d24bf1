"""Normalization helpers.

Centralizes value-kind inference for untyped payloads (msgpack values,
decoded struct fields) so the store only ever sees canonical kinds.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from pynt4.state.series import ValueKind


def is_number(value: Any) -> bool:
    """``int`` or ``float`` but not ``bool``."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def infer_array_kind(values: Sequence[Any]) -> ValueKind | None:
    """Array kind from the first element; ``None`` for empty or unsupported arrays."""
    if not values:
        return None
    first = values[0]
    if isinstance(first, bool):
        return ValueKind.BOOLEAN_ARRAY
    if is_number(first):
        return ValueKind.DOUBLE_ARRAY
    if isinstance(first, str):
        return ValueKind.STRING_ARRAY
    return None


def infer_kind(value: Any) -> ValueKind | None:
    """Value kind for a scalar or array payload, ``None`` when it can't be stored."""
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if is_number(value):
        return ValueKind.DOUBLE
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.RAW
    if isinstance(value, (list, tuple)):
        return infer_array_kind(value)
    return None


def infer_column_kind(column: Sequence[Any]) -> ValueKind | None:
    """Array kind for one struct-of-arrays column.

    Only floating-point and boolean columns are kept; the kind is taken
    from the first decoded element.
    """
    if not column:
        return None
    first = column[0]
    if isinstance(first, bool):
        return ValueKind.BOOLEAN_ARRAY
    if isinstance(first, float):
        return ValueKind.DOUBLE_ARRAY
    return None


def filter_elements(kind: ValueKind, values: Sequence[Any]) -> list[Any]:
    """Keep only elements representable in an array of *kind*."""
    if kind is ValueKind.BOOLEAN_ARRAY:
        return [v for v in values if isinstance(v, bool)]
    if kind is ValueKind.DOUBLE_ARRAY:
        return [float(v) for v in values if is_number(v)]
    if kind is ValueKind.STRING_ARRAY:
        return [v for v in values if isinstance(v, str)]
    return list(values)


def normalize_timestamp_micros(value: Any) -> int:
    """Clamp a wire timestamp to a positive integer microsecond count.

    Missing, non-numeric and non-positive timestamps become ``1`` so such
    samples still sort after "no data" but before any real sample.
    """
    if not is_number(value):
        return 1
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return 1
    ts = int(value)
    return ts if ts > 0 else 1
