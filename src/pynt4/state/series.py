"""Per-topic time series with change-only appends."""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pynt4._constants import DOUBLE_EPSILON


class ValueKind(StrEnum):
    """Closed set of value kinds a topic can hold.

    The string values double as the type label reported for topics that
    never received an explicit one.
    """

    DOUBLE = "double"
    BOOLEAN = "boolean"
    STRING = "string"
    DOUBLE_ARRAY = "double[]"
    BOOLEAN_ARRAY = "boolean[]"
    STRING_ARRAY = "string[]"
    RAW = "raw"


_NORMALIZERS: dict[ValueKind, Callable[[Any], Any]] = {
    ValueKind.DOUBLE: float,
    ValueKind.BOOLEAN: bool,
    ValueKind.STRING: str,
    ValueKind.DOUBLE_ARRAY: lambda value: [float(item) for item in value],
    ValueKind.BOOLEAN_ARRAY: lambda value: [bool(item) for item in value],
    ValueKind.STRING_ARRAY: lambda value: [str(item) for item in value],
    ValueKind.RAW: bytes,
}


def normalize_value(kind: ValueKind, value: Any) -> Any:
    """Coerce *value* into the canonical Python representation for *kind*.

    Arrays are always copied so callers can't mutate stored samples.
    """
    return _NORMALIZERS[kind](value)


def copy_value(kind: ValueKind, value: Any) -> Any:
    """Return a caller-owned copy of a stored sample."""
    if kind in (ValueKind.DOUBLE_ARRAY, ValueKind.BOOLEAN_ARRAY, ValueKind.STRING_ARRAY):
        return list(value)
    return value


def is_unchanged(kind: ValueKind, previous: Any, value: Any) -> bool:
    """Whether *value* repeats *previous* and must not be stored again."""
    if kind is ValueKind.DOUBLE:
        return previous == value or abs(previous - value) < DOUBLE_EPSILON
    return bool(previous == value)


@dataclass(slots=True)
class TopicSeries:
    """Append-only ``(timestamp, value)`` samples of a single kind."""

    kind: ValueKind
    timestamps: list[int] = field(default_factory=list)
    values: list[Any] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.timestamps)

    @property
    def first_timestamp(self) -> int | None:
        return self.timestamps[0] if self.timestamps else None

    @property
    def last_timestamp(self) -> int | None:
        return self.timestamps[-1] if self.timestamps else None

    def append(self, timestamp: int, value: Any) -> bool:
        """Append a normalized sample unless it repeats the previous one.

        Timestamps never move backwards: a sample older than the newest one
        is stored at the newest timestamp so lookups stay sorted.
        """
        if self.values and is_unchanged(self.kind, self.values[-1], value):
            return False
        if self.timestamps and timestamp < self.timestamps[-1]:
            timestamp = self.timestamps[-1]
        self.timestamps.append(timestamp)
        self.values.append(value)
        return True

    def index_at(self, query_time: int) -> int | None:
        """Index of the sample in effect at *query_time*, or ``None`` before the first one."""
        idx = bisect_right(self.timestamps, query_time)
        if idx == 0:
            return None
        return idx - 1
