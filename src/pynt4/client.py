"""High-level client owning one topic store and its ingest session."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from os import PathLike
from typing import Any, TypeVar

from pynt4._constants import MAX_TIMESTAMP
from pynt4._datalog import DataLogReader
from pynt4._nt4 import Nt4Runtime
from pynt4.config import Nt4Config
from pynt4.ingestion.datalog import build_updates_from_log
from pynt4.models.geometry import Pose2d, Pose3d, Rotation2d, Translation2d
from pynt4.models.topic import TopicInfo
from pynt4.state.events import IngestionSource
from pynt4.state.series import ValueKind
from pynt4.state.store import TopicStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_ZERO_DEFAULTS: dict[ValueKind, Any] = {
    ValueKind.DOUBLE: 0.0,
    ValueKind.BOOLEAN: False,
    ValueKind.STRING: "",
    ValueKind.DOUBLE_ARRAY: [],
    ValueKind.BOOLEAN_ARRAY: [],
    ValueKind.STRING_ARRAY: [],
    ValueKind.RAW: None,
}


class Nt4LogClient:
    """Live NT4 viewer and DataLog replayer over a shared topic store.

    All getters read at the replay cursor; with no cursor set they return
    the latest sample. Usage::

        with Nt4LogClient(Nt4Config.from_env()) as client:
            client.start_client("10.0.0.2")
            speed = client.get_number("/SmartDashboard/speed", 0.0)
    """

    def __init__(self, config: Nt4Config | None = None, *, store: TopicStore | None = None) -> None:
        self._config = config or Nt4Config()
        self._store = store if store is not None else TopicStore(strict=self._config.strict_value_kinds)
        self._runtime: Nt4Runtime | None = None
        self._cursor_time = 0

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> Nt4LogClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.disconnect()

    @property
    def config(self) -> Nt4Config:
        return self._config

    @property
    def store(self) -> TopicStore:
        return self._store

    @property
    def runtime(self) -> Nt4Runtime | None:
        return self._runtime

    @property
    def is_connected(self) -> bool:
        return self._runtime is not None and self._runtime.is_running

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def start_client(self, server_host: str | None = None) -> int:
        """Clear the store and stream from an NT4 server. Returns the session generation."""
        config = self._config
        if server_host is not None:
            config = dataclasses.replace(config, server_host=server_host)
        _logger.info("Starting NT4 client for %s", config.url)

        generation = self._store.clear()
        self._stop_runtime()
        runtime = Nt4Runtime(store=self._store, generation=generation, config=config, logger=_logger)
        runtime.start()
        self._runtime = runtime
        self._config = config
        _logger.debug("NT4 runtime started (generation=%s)", generation)
        return generation

    def disconnect(self) -> None:
        """Drop all data and stop the live session, if any."""
        _logger.debug("Disconnecting")
        self._store.clear()
        self._stop_runtime()

    def load_log_file(self, path: str | PathLike[str]) -> int:
        """Replace the store contents with a DataLog file. Returns the topic count.

        Raises :class:`~pynt4.exceptions.DataLogError` for files that aren't
        DataLogs and :class:`OSError` when the file can't be read. A strict
        store raises :class:`~pynt4.exceptions.TopicKindMismatchError` once
        the whole file has been applied.
        """
        _logger.info("Loading log file: %s", path)
        generation = self._store.clear()
        self._stop_runtime()

        reader = DataLogReader.from_path(path)
        self._store.apply(generation, build_updates_from_log(reader), source=IngestionSource.DATALOG)
        count = self._store.topic_count
        _logger.info("Log file loaded. Topics: %s", count)
        return count

    def _stop_runtime(self) -> None:
        runtime = self._runtime
        self._runtime = None
        if runtime is not None:
            runtime.stop()

    # ------------------------------------------------------------------
    # Replay cursor
    # ------------------------------------------------------------------

    def set_replay_cursor(self, timestamp_micros: int) -> None:
        """Pin getters to *timestamp_micros*; ``0`` returns to live."""
        self._cursor_time = max(0, int(timestamp_micros))

    def current_time(self) -> int:
        return self._cursor_time if self._cursor_time > 0 else MAX_TIMESTAMP

    def get_log_start_time(self) -> int:
        return self._store.get_start_timestamp()

    def get_last_timestamp(self) -> int:
        return self._store.get_last_timestamp()

    # ------------------------------------------------------------------
    # Value getters
    # ------------------------------------------------------------------

    def get_number(self, topic: str, default: float = 0.0) -> float:
        return self._store.get_double(topic, self.current_time(), default)

    def get_boolean(self, topic: str, default: bool = False) -> bool:
        return self._store.get_boolean(topic, self.current_time(), default)

    def get_string(self, topic: str, default: str = "") -> str:
        return self._store.get_string(topic, self.current_time(), default)

    def get_number_array(self, topic: str, default: list[float] | None = None) -> list[float]:
        values = self._store.get_double_array(topic, self.current_time(), [])
        return values if values else list(default or [])

    def get_boolean_array(self, topic: str, default: list[bool] | None = None) -> list[bool]:
        values = self._store.get_boolean_array(topic, self.current_time(), [])
        return values if values else list(default or [])

    def get_string_array(self, topic: str, default: list[str] | None = None) -> list[str]:
        values = self._store.get_string_array(topic, self.current_time(), [])
        return values if values else list(default or [])

    def get_raw(self, topic: str) -> bytes | None:
        return self._store.get_raw(topic, self.current_time())

    def get_value(self, topic: str, default: Any = None) -> Any:
        """Value of *topic* whatever its kind, or *default* for unknown topics."""
        kind = self._store.get_kind(topic)
        if kind is None:
            return default
        getters: dict[ValueKind, Callable[[str, int, Any], Any]] = {
            ValueKind.DOUBLE: self._store.get_double,
            ValueKind.BOOLEAN: self._store.get_boolean,
            ValueKind.STRING: self._store.get_string,
            ValueKind.DOUBLE_ARRAY: self._store.get_double_array,
            ValueKind.BOOLEAN_ARRAY: self._store.get_boolean_array,
            ValueKind.STRING_ARRAY: self._store.get_string_array,
            ValueKind.RAW: self._store.get_raw,
        }
        value = getters[kind](topic, self.current_time(), _ZERO_DEFAULTS[kind])
        return default if value is None else value

    def get_boolean_series(self, topic: str) -> dict[str, list[Any]]:
        """Every stored change of a boolean topic; empty for other topics."""
        if self._store.get_kind(topic) is not ValueKind.BOOLEAN:
            return {}
        series = self._store.get_series(topic)
        if series is None:
            return {}
        timestamps, values = series
        return {"timestamps": timestamps, "values": values}

    def get_topic_info(self) -> list[TopicInfo]:
        return [TopicInfo(name=name, type=type_str) for name, type_str in self._store.get_topics_info()]

    # ------------------------------------------------------------------
    # Geometry helpers (raw struct bytes)
    # ------------------------------------------------------------------

    def _decode_raw(self, topic: str, decoder: Callable[[bytes], T | None], default: T | None) -> T | None:
        data = self.get_raw(topic)
        if data is None:
            return default
        decoded = decoder(data)
        return default if decoded is None else decoded

    def get_translation2d(self, topic: str, default: Translation2d | None = None) -> Translation2d | None:
        return self._decode_raw(
            topic,
            lambda data: Translation2d.from_bytes(data) if Translation2d.fits(data) else None,
            default,
        )

    def get_rotation2d(self, topic: str, default: Rotation2d | None = None) -> Rotation2d | None:
        return self._decode_raw(
            topic,
            lambda data: Rotation2d.from_bytes(data) if Rotation2d.fits(data) else None,
            default,
        )

    def get_pose2d(self, topic: str, default: Pose2d | None = None) -> Pose2d | None:
        return self._decode_raw(
            topic,
            lambda data: Pose2d.from_bytes(data) if Pose2d.fits(data) else None,
            default,
        )

    def get_pose3d(self, topic: str, default: Pose3d | None = None) -> Pose3d | None:
        return self._decode_raw(
            topic,
            lambda data: Pose3d.from_bytes(data) if Pose3d.fits(data) else None,
            default,
        )

    def get_pose3d_array(self, topic: str, default: list[Pose3d] | None = None) -> list[Pose3d] | None:
        return self._decode_raw(topic, Pose3d.array_from_bytes, default)
