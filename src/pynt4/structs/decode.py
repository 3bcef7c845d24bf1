"""Little-endian struct record decoding.

Decoding is best-effort: a record that is truncated, or that references a
schema not registered yet, yields the fields decoded so far instead of an
error, so leading fields stay usable while schemas are still arriving.
"""

from __future__ import annotations

import struct
from typing import Any

from pynt4.structs.schema import Schema, SchemaField, SchemaRegistry, compute_size

# Scalar struct codes for numeric primitives; bool and char are handled separately.
_FORMATS: dict[str, str] = {
    "double": "d",
    "float64": "d",
    "float": "f",
    "float32": "f",
    "int8": "b",
    "uint8": "B",
    "int16": "h",
    "uint16": "H",
    "int32": "i",
    "int": "i",
    "uint32": "I",
    "int64": "q",
    "long": "q",
    "uint64": "Q",
}

DecodedValue = float | int | bool | str | list[Any]


def _decode_primitive(field: SchemaField, data: bytes, offset: int) -> DecodedValue:
    count = field.array_size
    if field.type == "char":
        raw = data[offset : offset + (count or 1)]
        return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")
    if field.type in ("bool", "boolean"):
        if count is None:
            return data[offset] != 0
        return [byte != 0 for byte in data[offset : offset + count]]
    code = _FORMATS[field.type]
    if count is None:
        return struct.unpack_from(f"<{code}", data, offset)[0]
    return list(struct.unpack_from(f"<{count}{code}", data, offset))


def decode(schema: Schema, data: bytes, registry: SchemaRegistry) -> list[tuple[str, DecodedValue]]:
    """Decode one record into ``(field path, value)`` pairs in declaration order.

    Nested records are flattened with ``/`` (``translation/x``); arrays of
    nested records add the element index (``modules/0/angle``).
    """
    results: list[tuple[str, DecodedValue]] = []
    cursor = 0
    end = len(data)

    for field in schema.fields:
        if cursor >= end:
            break

        if field.is_primitive:
            width = field.width
            if cursor + width > end:
                break
            results.append((field.name, _decode_primitive(field, data, cursor)))
            cursor += width
            continue

        nested = registry.get(field.type)
        if nested is None:
            break
        size = compute_size(nested, registry)
        if size == 0:
            break

        for index in range(field.array_size or 1):
            if cursor >= end:
                return results
            prefix = field.name if field.array_size is None else f"{field.name}/{index}"
            for path, value in decode(nested, data[cursor : cursor + size], registry):
                results.append((f"{prefix}/{path}", value))
            cursor += size

    return results


def decode_struct_array(schema: Schema, data: bytes, registry: SchemaRegistry) -> dict[str, list[DecodedValue]]:
    """Decode concatenated fixed-size records into one list per field path.

    Trailing bytes that don't form a whole record are ignored. An
    unresolvable schema (size 0) decodes to an empty mapping.
    """
    size = compute_size(schema, registry)
    columns: dict[str, list[DecodedValue]] = {}
    if size == 0:
        return columns

    cursor = 0
    while cursor + size <= len(data):
        for path, value in decode(schema, data[cursor : cursor + size], registry):
            columns.setdefault(path, []).append(value)
        cursor += size
    return columns
