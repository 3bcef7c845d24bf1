"""Thread-safe in-memory topic store.

This is the only component allowed to merge incoming topic updates. One
coarse reader/writer lock guards the topic map, the type labels and the
generation counter together, so the generation check done by an ingest
worker is always consistent with the data it writes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pynt4._lock import ReadWriteLock
from pynt4.exceptions import TopicKindMismatchError
from pynt4.state.events import IngestionSource, TopicUpdate
from pynt4.state.series import TopicSeries, ValueKind, copy_value, normalize_value

_logger = logging.getLogger(__name__)


class TopicStore:
    """Per-topic time series with point-in-time lookup.

    Queries are total: an absent topic, a topic of another kind, an empty
    series or a time before the first sample all resolve to the caller's
    default.
    """

    def __init__(self, *, strict: bool = False) -> None:
        self._lock = ReadWriteLock()
        self._strict = strict
        self._series: dict[str, TopicSeries] = {}
        self._types: dict[str, str] = {}
        self._generation = 0

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        with self._lock.read():
            return self._generation

    def check_generation(self, expected: int) -> bool:
        """Whether *expected* is still the current generation."""
        with self._lock.read():
            return self._generation == expected

    def clear(self) -> int:
        """Drop all topics and labels and start a new generation.

        Returns the new generation so a caller starting a session can hand it
        to its ingest worker.
        """
        with self._lock.write():
            self._series.clear()
            self._types.clear()
            self._generation += 1
            generation = self._generation
        _logger.debug("Store cleared, generation=%s", generation)
        return generation

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_type(self, topic: str, label: str) -> None:
        """Set the display type label of *topic*; stored values are untouched."""
        with self._lock.write():
            self._types[topic] = label

    def apply(
        self,
        generation: int,
        updates: Iterable[TopicUpdate],
        *,
        source: IngestionSource = IngestionSource.NT4,
    ) -> bool:
        """Apply *updates* if *generation* is still current.

        The check and every write happen in one critical section. Returns
        ``False`` without writing anything when the generation is stale; the
        caller is expected to stop producing.

        In strict mode a kind mismatch only rejects that one update: the rest
        of the batch is still applied, then the first
        :class:`~pynt4.exceptions.TopicKindMismatchError` is raised.
        """
        mismatches: list[TopicKindMismatchError] = []
        with self._lock.write():
            if self._generation != generation:
                _logger.debug(
                    "Rejected %s updates from stale generation %s (current %s)",
                    source,
                    generation,
                    self._generation,
                )
                return False
            for update in updates:
                if update.type_label is not None:
                    self._types[update.topic] = update.type_label
                if update.kind is None:
                    continue
                try:
                    self._append(update.topic, update.kind, update.timestamp, update.value)
                except TopicKindMismatchError as exc:
                    mismatches.append(exc)
        if mismatches:
            first = mismatches[0]
            if len(mismatches) > 1:
                first.add_note(f"{len(mismatches) - 1} more mismatched {source} updates were rejected")
            raise first
        return True

    def update_double(self, topic: str, timestamp: int, value: float) -> None:
        self._update(topic, ValueKind.DOUBLE, timestamp, value)

    def update_boolean(self, topic: str, timestamp: int, value: bool) -> None:
        self._update(topic, ValueKind.BOOLEAN, timestamp, value)

    def update_string(self, topic: str, timestamp: int, value: str) -> None:
        self._update(topic, ValueKind.STRING, timestamp, value)

    def update_double_array(self, topic: str, timestamp: int, value: Iterable[float]) -> None:
        self._update(topic, ValueKind.DOUBLE_ARRAY, timestamp, value)

    def update_boolean_array(self, topic: str, timestamp: int, value: Iterable[bool]) -> None:
        self._update(topic, ValueKind.BOOLEAN_ARRAY, timestamp, value)

    def update_string_array(self, topic: str, timestamp: int, value: Iterable[str]) -> None:
        self._update(topic, ValueKind.STRING_ARRAY, timestamp, value)

    def update_raw(self, topic: str, timestamp: int, value: bytes) -> None:
        self._update(topic, ValueKind.RAW, timestamp, value)

    def _update(self, topic: str, kind: ValueKind, timestamp: int, value: Any) -> None:
        with self._lock.write():
            self._append(topic, kind, timestamp, value)

    def _append(self, topic: str, kind: ValueKind, timestamp: int, value: Any) -> None:
        # Caller holds the write lock.
        series = self._series.get(topic)
        if series is None:
            series = TopicSeries(kind)
            self._series[topic] = series
        elif series.kind is not kind:
            if self._strict:
                raise TopicKindMismatchError(topic, expected=series.kind.value, actual=kind.value)
            _logger.warning(
                "Dropped %s write to %s topic %s at %s",
                kind.value,
                series.kind.value,
                topic,
                timestamp,
            )
            return
        series.append(timestamp, normalize_value(kind, value))

    # ------------------------------------------------------------------
    # Point-in-time queries
    # ------------------------------------------------------------------

    def _lookup(self, topic: str, kind: ValueKind, query_time: int, default: Any) -> Any:
        with self._lock.read():
            series = self._series.get(topic)
            if series is None or series.kind is not kind:
                return default
            idx = series.index_at(query_time)
            if idx is None:
                return default
            return copy_value(kind, series.values[idx])

    def get_double(self, topic: str, query_time: int, default: float) -> float:
        return self._lookup(topic, ValueKind.DOUBLE, query_time, default)

    def get_boolean(self, topic: str, query_time: int, default: bool) -> bool:
        return self._lookup(topic, ValueKind.BOOLEAN, query_time, default)

    def get_string(self, topic: str, query_time: int, default: str) -> str:
        return self._lookup(topic, ValueKind.STRING, query_time, default)

    def get_double_array(self, topic: str, query_time: int, default: list[float]) -> list[float]:
        return self._lookup(topic, ValueKind.DOUBLE_ARRAY, query_time, default)

    def get_boolean_array(self, topic: str, query_time: int, default: list[bool]) -> list[bool]:
        return self._lookup(topic, ValueKind.BOOLEAN_ARRAY, query_time, default)

    def get_string_array(self, topic: str, query_time: int, default: list[str]) -> list[str]:
        return self._lookup(topic, ValueKind.STRING_ARRAY, query_time, default)

    def get_raw(self, topic: str, query_time: int, default: bytes | None = None) -> bytes | None:
        return self._lookup(topic, ValueKind.RAW, query_time, default)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def has_topic(self, topic: str) -> bool:
        with self._lock.read():
            return topic in self._series

    def get_kind(self, topic: str) -> ValueKind | None:
        with self._lock.read():
            series = self._series.get(topic)
            return series.kind if series is not None else None

    @property
    def topic_count(self) -> int:
        with self._lock.read():
            return len(self._series)

    def get_series(self, topic: str) -> tuple[list[int], list[Any]] | None:
        """Copy of every stored ``(timestamps, values)`` pair for *topic*."""
        with self._lock.read():
            series = self._series.get(topic)
            if series is None:
                return None
            return list(series.timestamps), [copy_value(series.kind, v) for v in series.values]

    def get_topics_info(self) -> list[tuple[str, str]]:
        """``(topic, type label)`` for every topic holding data, sorted by name."""
        with self._lock.read():
            return [
                (topic, self._types.get(topic, series.kind.value))
                for topic, series in sorted(self._series.items())
            ]

    def get_start_timestamp(self) -> int:
        """Earliest first-sample timestamp across all topics (0 when empty)."""
        with self._lock.read():
            firsts = [s.first_timestamp for s in self._series.values() if s.first_timestamp is not None]
        return min(firsts) if firsts else 0

    def get_last_timestamp(self) -> int:
        """Latest sample timestamp across all topics (0 when empty)."""
        with self._lock.read():
            lasts = [s.last_timestamp for s in self._series.values() if s.last_timestamp is not None]
        return max(lasts) if lasts else 0
