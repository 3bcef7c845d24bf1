"""WPILib DataLog (``.wpilog``) binary reader.

File layout::

    "WPILOG" | version:u16 | extra_len:u32 | extra header (UTF-8)
    record*

Every record starts with a length byte packing the widths of the fields
that follow (entry id 1-4 bytes, payload size 1-4 bytes, timestamp 1-8
bytes, all little-endian). Entry 0 carries control records that start,
finish and annotate the data entries.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterator
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Any

from pynt4.exceptions import DataLogError

_logger = logging.getLogger(__name__)

MAGIC = b"WPILOG"
SUPPORTED_VERSION = 0x0100

CONTROL_START = 0
CONTROL_FINISH = 1
CONTROL_SET_METADATA = 2

_ARRAY_FORMATS: dict[str, tuple[str, int]] = {
    "int64[]": ("q", 8),
    "float[]": ("f", 4),
    "double[]": ("d", 8),
}
_SCALAR_FORMATS: dict[str, tuple[str, int]] = {
    "int64": ("<q", 8),
    "float": ("<f", 4),
    "double": ("<d", 8),
}


@dataclass(frozen=True)
class DataLogEntry:
    """A started data entry (the log's equivalent of a topic)."""

    entry: int
    name: str
    type: str
    metadata: str = ""


@dataclass(frozen=True)
class DataLogRecord:
    """One raw record; ``entry == 0`` marks a control record."""

    entry: int
    timestamp: int
    data: bytes
    offset: int

    @property
    def is_control(self) -> bool:
        return self.entry == 0


def _read_uint(data: bytes, offset: int, width: int) -> int:
    return int.from_bytes(data[offset : offset + width], "little")


def _read_string(data: bytes, offset: int) -> tuple[str, int]:
    if offset + 4 > len(data):
        raise DataLogError("string length runs past record", offset=offset)
    length = _read_uint(data, offset, 4)
    start = offset + 4
    if start + length > len(data):
        raise DataLogError("string runs past record", offset=offset)
    return data[start : start + length].decode("utf-8", errors="replace"), start + length


def decode_value(type_str: str, payload: bytes) -> Any:
    """Decode a data record payload by its entry type.

    Returns ``None`` when the payload size doesn't match the type. Types
    without a fixed layout here (``raw``, ``struct:*``, ``msgpack``, ...)
    are returned as bytes.
    """
    if type_str == "boolean":
        return payload[0] != 0 if len(payload) == 1 else None
    if type_str in _SCALAR_FORMATS:
        fmt, width = _SCALAR_FORMATS[type_str]
        return struct.unpack(fmt, payload)[0] if len(payload) == width else None
    if type_str in ("string", "json"):
        return payload.decode("utf-8", errors="replace")
    if type_str == "boolean[]":
        return [byte != 0 for byte in payload]
    if type_str in _ARRAY_FORMATS:
        code, width = _ARRAY_FORMATS[type_str]
        if len(payload) % width:
            return None
        return list(struct.unpack(f"<{len(payload) // width}{code}", payload))
    if type_str == "string[]":
        if len(payload) < 4:
            return None
        count = _read_uint(payload, 0, 4)
        items: list[str] = []
        offset = 4
        try:
            for _ in range(count):
                item, offset = _read_string(payload, offset)
                items.append(item)
        except DataLogError:
            return None
        return items
    return bytes(payload)


class DataLogReader:
    """Random-access reader over an in-memory DataLog file."""

    def __init__(self, data: bytes) -> None:
        if len(data) < 12 or data[:6] != MAGIC:
            raise DataLogError("not a WPILOG file (bad magic)")
        version = _read_uint(data, 6, 2)
        if version >> 8 != SUPPORTED_VERSION >> 8:
            raise DataLogError(f"unsupported WPILOG version 0x{version:04x}", offset=6)
        extra_len = _read_uint(data, 8, 4)
        if 12 + extra_len > len(data):
            raise DataLogError("extra header runs past end of file", offset=8)

        self._data = data
        self.version = version
        self.extra_header = data[12 : 12 + extra_len].decode("utf-8", errors="replace")
        self._records_offset = 12 + extra_len

    @classmethod
    def from_path(cls, path: str | PathLike[str]) -> DataLogReader:
        return cls(Path(path).read_bytes())

    def __iter__(self) -> Iterator[DataLogRecord]:
        return self.records()

    def records(self) -> Iterator[DataLogRecord]:
        """Every record in file order; a truncated trailing record ends iteration."""
        data = self._data
        offset = self._records_offset
        end = len(data)
        while offset < end:
            lengths = data[offset]
            entry_width = (lengths & 0x3) + 1
            size_width = ((lengths >> 2) & 0x3) + 1
            ts_width = ((lengths >> 4) & 0x7) + 1
            header_len = 1 + entry_width + size_width + ts_width
            if offset + header_len > end:
                _logger.debug("Truncated record header at offset %s", offset)
                return

            cursor = offset + 1
            entry = _read_uint(data, cursor, entry_width)
            cursor += entry_width
            size = _read_uint(data, cursor, size_width)
            cursor += size_width
            timestamp = _read_uint(data, cursor, ts_width)
            cursor += ts_width

            if cursor + size > end:
                _logger.debug("Truncated record payload at offset %s", offset)
                return
            yield DataLogRecord(entry=entry, timestamp=timestamp, data=data[cursor : cursor + size], offset=offset)
            offset = cursor + size

    def read_values(self) -> Iterator[tuple[DataLogEntry, int, Any]]:
        """Decoded ``(entry, timestamp, value)`` triples for every data record.

        Records for entries that were never started (or already finished)
        are skipped, as are payloads that don't match their type.
        """
        active: dict[int, DataLogEntry] = {}
        for record in self.records():
            if record.is_control:
                self._apply_control(record, active)
                continue
            entry = active.get(record.entry)
            if entry is None:
                continue
            value = decode_value(entry.type, record.data)
            if value is None:
                _logger.debug("Malformed %s payload for %s at offset %s", entry.type, entry.name, record.offset)
                continue
            yield entry, record.timestamp, value

    def entries(self) -> list[DataLogEntry]:
        """Every entry started in the file, in start order."""
        active: dict[int, DataLogEntry] = {}
        started: list[DataLogEntry] = []
        for record in self.records():
            if record.is_control and self._apply_control(record, active) == CONTROL_START:
                started.append(active[_read_uint(record.data, 1, 4)])
        return started

    @staticmethod
    def _apply_control(record: DataLogRecord, active: dict[int, DataLogEntry]) -> int | None:
        payload = record.data
        if len(payload) < 5:
            _logger.debug("Short control record at offset %s", record.offset)
            return None
        kind = payload[0]
        entry_id = _read_uint(payload, 1, 4)
        try:
            if kind == CONTROL_START:
                name, cursor = _read_string(payload, 5)
                type_str, cursor = _read_string(payload, cursor)
                metadata, _ = _read_string(payload, cursor)
                active[entry_id] = DataLogEntry(entry=entry_id, name=name, type=type_str, metadata=metadata)
            elif kind == CONTROL_FINISH:
                active.pop(entry_id, None)
            elif kind == CONTROL_SET_METADATA:
                metadata, _ = _read_string(payload, 5)
                current = active.get(entry_id)
                if current is not None:
                    active[entry_id] = DataLogEntry(
                        entry=entry_id,
                        name=current.name,
                        type=current.type,
                        metadata=metadata,
                    )
            else:
                _logger.debug("Unknown control record type %s at offset %s", kind, record.offset)
                return None
        except DataLogError:
            _logger.debug("Malformed control record at offset %s", record.offset, exc_info=True)
            return None
        return kind
