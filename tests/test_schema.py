from __future__ import annotations

from pynt4.structs.schema import SchemaField, SchemaRegistry, compute_size, parse_schema, schema_key


def test_parse_primitive_schema() -> None:
    schema = parse_schema("Translation2d", "double x;double y")

    assert schema.name == "Translation2d"
    assert schema.fields == (SchemaField("x", "double"), SchemaField("y", "double"))
    assert schema.size == 16


def test_parse_skips_short_statements_and_whitespace() -> None:
    schema = parse_schema("Flags", "  bool  enabled ; ; garbage;  int16 code ;")

    assert [f.name for f in schema.fields] == ["enabled", "code"]
    assert schema.size == 3


def test_parse_ignores_tokens_after_field_name() -> None:
    schema = parse_schema("S", "double x extra; int8 a : 4; double v [3]; float w [ 2 ]")

    assert [f.name for f in schema.fields] == ["x", "a", "v", "w"]
    assert schema.fields[2].array_size == 3
    assert schema.fields[3].array_size == 2
    assert schema.size == 8 + 1 + 24 + 8


def test_parse_fixed_arrays_on_name_or_type() -> None:
    schema = parse_schema("Arrays", "double values[3]; uint8[4] raw; char label[8]")

    assert schema.fields[0] == SchemaField("values", "double", 3)
    assert schema.fields[1] == SchemaField("raw", "uint8", 4)
    assert schema.fields[2] == SchemaField("label", "char", 8)
    assert schema.size == 24 + 4 + 8


def test_parse_enum_prefix_uses_underlying_type() -> None:
    schema = parse_schema("Mode", "enum {a=1, b=2} int8 mode; float speed")

    assert schema.fields[0] == SchemaField("mode", "int8")
    assert schema.size == 5


def test_nested_schema_has_zero_parse_time_size() -> None:
    schema = parse_schema("Pose2d", "Translation2d translation; Rotation2d rotation")

    assert schema.size == 0
    assert not schema.fields[0].is_primitive


def test_registry_strips_struct_prefix() -> None:
    registry = SchemaRegistry()
    registry.register("struct:Rotation2d", "double value")

    assert schema_key("struct:Rotation2d") == "Rotation2d"
    assert "Rotation2d" in registry
    assert "struct:Rotation2d" in registry
    assert registry.get("Rotation2d") is registry.get("struct:Rotation2d")
    assert registry.names() == ["Rotation2d"]


def test_registry_redefinition_replaces_schema() -> None:
    registry = SchemaRegistry()
    registry.register("Gain", "double kP")
    registry.register("Gain", "double kP; double kI")

    assert len(registry) == 1
    assert registry.get("Gain").size == 16  # type: ignore[union-attr]


def test_compute_size_resolves_nested_schemas() -> None:
    registry = SchemaRegistry()
    pose = registry.register("Pose2d", "Translation2d translation; Rotation2d rotation")

    # Dependencies not registered yet.
    assert compute_size(pose, registry) == 0

    registry.register("Translation2d", "double x; double y")
    assert compute_size(pose, registry) == 0

    registry.register("Rotation2d", "double value")
    assert compute_size(pose, registry) == 24


def test_compute_size_multiplies_nested_arrays() -> None:
    registry = SchemaRegistry()
    registry.register("Module", "double speed; double angle")
    drive = registry.register("Drive", "Module modules[4]; bool enabled")

    assert compute_size(drive, registry) == 4 * 16 + 1


def test_compute_size_is_zero_for_cycles() -> None:
    registry = SchemaRegistry()
    a = registry.register("A", "B b")
    registry.register("B", "A a")

    assert compute_size(a, registry) == 0
