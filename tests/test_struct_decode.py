from __future__ import annotations

import struct

import pytest

from pynt4.structs.decode import decode, decode_struct_array
from pynt4.structs.schema import SchemaRegistry


@pytest.fixture
def registry() -> SchemaRegistry:
    return SchemaRegistry()


def test_decode_two_doubles(registry: SchemaRegistry) -> None:
    schema = registry.register("Pose2d", "double x; double y;")
    data = struct.pack("<2d", 8.0, 3.0)

    assert decode(schema, data, registry) == [("x", 8.0), ("y", 3.0)]


def test_decode_primitive_types(registry: SchemaRegistry) -> None:
    schema = registry.register(
        "Mixed",
        "bool ok; int8 a; uint16 b; int32 c; int64 d; float e; char name[4]; bool bits[2]",
    )
    data = (
        struct.pack("<?bHiqf", True, -3, 65000, -70000, 2**40, 0.5)
        + b"ab\0\0"
        + b"\x01\x00"
    )

    assert decode(schema, data, registry) == [
        ("ok", True),
        ("a", -3),
        ("b", 65000),
        ("c", -70000),
        ("d", 2**40),
        ("e", 0.5),
        ("name", "ab"),
        ("bits", [True, False]),
    ]


def test_decode_numeric_array(registry: SchemaRegistry) -> None:
    schema = registry.register("Gains", "double k[3]")

    assert decode(schema, struct.pack("<3d", 1.0, 2.0, 3.0), registry) == [("k", [1.0, 2.0, 3.0])]


def test_decode_nested_schema_flattens_paths(registry: SchemaRegistry) -> None:
    registry.register("Translation2d", "double x; double y")
    registry.register("Rotation2d", "double value")
    pose = registry.register("Pose2d", "Translation2d translation; Rotation2d rotation")

    data = struct.pack("<3d", 1.5, -2.0, 0.25)

    assert decode(pose, data, registry) == [
        ("translation/x", 1.5),
        ("translation/y", -2.0),
        ("rotation/value", 0.25),
    ]


def test_decode_nested_array_includes_index(registry: SchemaRegistry) -> None:
    registry.register("Module", "double speed; double angle")
    drive = registry.register("Drive", "Module modules[2]")

    data = struct.pack("<4d", 1.0, 10.0, 2.0, 20.0)

    assert decode(drive, data, registry) == [
        ("modules/0/speed", 1.0),
        ("modules/0/angle", 10.0),
        ("modules/1/speed", 2.0),
        ("modules/1/angle", 20.0),
    ]


def test_truncated_record_returns_leading_fields(registry: SchemaRegistry) -> None:
    schema = registry.register("Triple", "double a; double b; double c")
    data = struct.pack("<2d", 1.0, 2.0) + b"\x00\x00"

    assert decode(schema, data, registry) == [("a", 1.0), ("b", 2.0)]


def test_unknown_nested_type_stops_decoding(registry: SchemaRegistry) -> None:
    schema = registry.register("Partial", "double a; Missing m; double b")
    data = struct.pack("<3d", 1.0, 2.0, 3.0)

    assert decode(schema, data, registry) == [("a", 1.0)]


def test_struct_array_decodes_struct_of_arrays(registry: SchemaRegistry) -> None:
    schema = registry.register("Sample", "float value; int32 count")
    data = b"".join(struct.pack("<fi", float(i) + 0.5, i) for i in range(3))

    columns = decode_struct_array(schema, data, registry)

    assert columns == {"value": [0.5, 1.5, 2.5], "count": [0, 1, 2]}


def test_struct_array_ignores_trailing_partial_record(registry: SchemaRegistry) -> None:
    schema = registry.register("Rotation2d", "double value")
    data = struct.pack("<2d", 1.0, 2.0) + b"\x00\x00\x00"

    assert decode_struct_array(schema, data, registry) == {"value": [1.0, 2.0]}


def test_struct_array_with_unresolved_schema_is_empty(registry: SchemaRegistry) -> None:
    schema = registry.register("Pose2d", "Translation2d translation")

    assert decode_struct_array(schema, b"\x00" * 32, registry) == {}
