from __future__ import annotations

import struct
from pathlib import Path

import pytest


class DataLogBuilder:
    """Assemble WPILOG files in memory for reader and client tests."""

    def __init__(self, extra_header: str = "") -> None:
        extra = extra_header.encode()
        self._chunks = [b"WPILOG", struct.pack("<HI", 0x0100, len(extra)), extra]

    def _record(self, entry: int, timestamp: int, payload: bytes) -> DataLogBuilder:
        # 4-byte entry id, 4-byte size, 8-byte timestamp.
        self._chunks.append(bytes([0x7F]) + struct.pack("<IIQ", entry, len(payload), timestamp) + payload)
        return self

    @staticmethod
    def _string(value: str) -> bytes:
        raw = value.encode()
        return struct.pack("<I", len(raw)) + raw

    def start(self, entry: int, name: str, type_str: str, metadata: str = "", timestamp: int = 0) -> DataLogBuilder:
        payload = bytes([0]) + struct.pack("<I", entry) + self._string(name) + self._string(type_str) + self._string(metadata)
        return self._record(0, timestamp, payload)

    def finish(self, entry: int, timestamp: int = 0) -> DataLogBuilder:
        return self._record(0, timestamp, bytes([1]) + struct.pack("<I", entry))

    def set_metadata(self, entry: int, metadata: str, timestamp: int = 0) -> DataLogBuilder:
        return self._record(0, timestamp, bytes([2]) + struct.pack("<I", entry) + self._string(metadata))

    def raw(self, entry: int, timestamp: int, payload: bytes) -> DataLogBuilder:
        return self._record(entry, timestamp, payload)

    def double(self, entry: int, timestamp: int, value: float) -> DataLogBuilder:
        return self._record(entry, timestamp, struct.pack("<d", value))

    def int64(self, entry: int, timestamp: int, value: int) -> DataLogBuilder:
        return self._record(entry, timestamp, struct.pack("<q", value))

    def boolean(self, entry: int, timestamp: int, value: bool) -> DataLogBuilder:
        return self._record(entry, timestamp, bytes([1 if value else 0]))

    def string(self, entry: int, timestamp: int, value: str) -> DataLogBuilder:
        return self._record(entry, timestamp, value.encode())

    def double_array(self, entry: int, timestamp: int, values: list[float]) -> DataLogBuilder:
        return self._record(entry, timestamp, struct.pack(f"<{len(values)}d", *values))

    def string_array(self, entry: int, timestamp: int, values: list[str]) -> DataLogBuilder:
        payload = struct.pack("<I", len(values)) + b"".join(self._string(v) for v in values)
        return self._record(entry, timestamp, payload)

    def build(self) -> bytes:
        return b"".join(self._chunks)

    def write(self, path: Path) -> Path:
        path.write_bytes(self.build())
        return path


@pytest.fixture
def datalog() -> DataLogBuilder:
    return DataLogBuilder(extra_header="pynt4 tests")
