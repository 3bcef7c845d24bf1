"""Struct schema parsing and the per-session schema registry.

Schemas use the WPILib struct text layout::

    double x; double y; Rotation2d rotation; int8 flags[4]

Primitive widths are known at parse time. A type token that is not a
primitive names another schema; its width is resolved lazily against the
registry because schemas may arrive in any order.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from pynt4._constants import STRUCT_TYPE_PREFIX

_logger = logging.getLogger(__name__)

PRIMITIVE_SIZES: dict[str, int] = {
    "double": 8,
    "float64": 8,
    "float": 4,
    "float32": 4,
    "bool": 1,
    "boolean": 1,
    "char": 1,
    "int8": 1,
    "uint8": 1,
    "int16": 2,
    "uint16": 2,
    "int32": 4,
    "uint32": 4,
    "int": 4,
    "int64": 8,
    "uint64": 8,
    "long": 8,
}

_ARRAY_SUFFIX = re.compile(r"^(?P<base>[^\[\]]+)\[(?P<count>\d+)\]$")
_ENUM_PREFIX = re.compile(r"^enum\s*\{[^}]*\}\s*")


def primitive_size(type_name: str) -> int:
    """Byte width of a primitive type, 0 for anything else."""
    return PRIMITIVE_SIZES.get(type_name, 0)


def schema_key(name: str) -> str:
    """Registry key for a schema or type name (``struct:Pose3d`` -> ``Pose3d``)."""
    name = name.strip()
    if name.startswith(STRUCT_TYPE_PREFIX):
        return name[len(STRUCT_TYPE_PREFIX) :]
    return name


@dataclass(frozen=True)
class SchemaField:
    """One declared field. ``array_size`` is ``None`` for scalars."""

    name: str
    type: str
    array_size: int | None = None

    @property
    def is_primitive(self) -> bool:
        return self.type in PRIMITIVE_SIZES

    @property
    def width(self) -> int:
        """Bytes occupied by a primitive field (0 for nested schema references)."""
        return primitive_size(self.type) * (self.array_size or 1)


@dataclass(frozen=True)
class Schema:
    """Parsed struct layout.

    ``size`` is the total width when every field is primitive, and 0 when
    the layout depends on nested schemas (see :func:`compute_size`).
    """

    name: str
    fields: tuple[SchemaField, ...]
    size: int


def _split_array(token: str) -> tuple[str, int | None]:
    match = _ARRAY_SUFFIX.match(token)
    if match is None:
        return token, None
    return match.group("base"), int(match.group("count"))


def _name_token(tokens: list[str]) -> str:
    # "x [3]" and "x [ 3 ]" spell the same array suffix as "x[3]".
    if len(tokens) < 3 or not tokens[2].startswith("["):
        return tokens[1]
    parts = [tokens[1]]
    for token in tokens[2:]:
        parts.append(token)
        if token.endswith("]"):
            break
    return "".join(parts)


def parse_schema(name: str, definition: str) -> Schema:
    """Parse a ``"<type> <name>; ..."`` definition.

    Statements with fewer than two tokens are skipped and tokens after the
    field name are ignored. A fixed array can be declared either on the name
    (``double x[3]``, ``double x [3]``) or on the type (``double[3] x``).
    Enum value lists are accepted and ignored; the field decodes as its
    underlying integer type.
    """
    fields: list[SchemaField] = []
    has_nested = False
    for statement in definition.split(";"):
        statement = _ENUM_PREFIX.sub("", statement.strip())
        tokens = statement.split()
        if len(tokens) < 2:
            continue

        type_name, type_count = _split_array(tokens[0])
        field_name, name_count = _split_array(_name_token(tokens))
        array_size = name_count if name_count is not None else type_count
        if array_size is not None and array_size <= 0:
            continue

        field = SchemaField(name=field_name, type=type_name, array_size=array_size)
        has_nested = has_nested or not field.is_primitive
        fields.append(field)

    size = 0 if has_nested else sum(field.width for field in fields)
    return Schema(name=schema_key(name), fields=tuple(fields), size=size)


class SchemaRegistry:
    """Schemas received during one ingest session, keyed by bare type name."""

    def __init__(self) -> None:
        self._schemas: dict[str, Schema] = {}

    def register(self, name: str, definition: str) -> Schema:
        """Parse and store a definition; a later definition replaces an earlier one."""
        schema = parse_schema(name, definition)
        if schema.name in self._schemas:
            _logger.debug("Schema %s redefined", schema.name)
        self._schemas[schema.name] = schema
        _logger.debug("Parsed schema %s fields=%s size=%s", schema.name, len(schema.fields), schema.size)
        return schema

    def get(self, name: str) -> Schema | None:
        return self._schemas.get(schema_key(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and schema_key(name) in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def names(self) -> list[str]:
        return sorted(self._schemas)

    def clear(self) -> None:
        self._schemas.clear()


def _resolved_size(schema: Schema, registry: SchemaRegistry, stack: frozenset[str]) -> int | None:
    if schema.size:
        return schema.size
    total = 0
    for field in schema.fields:
        if field.is_primitive:
            total += field.width
            continue
        nested = registry.get(field.type)
        if nested is None or nested.name in stack:
            return None
        nested_size = _resolved_size(nested, registry, stack | {nested.name})
        if not nested_size:
            return None
        total += nested_size * (field.array_size or 1)
    return total


def compute_size(schema: Schema, registry: SchemaRegistry) -> int:
    """Total record width in bytes, resolving nested schemas recursively.

    Returns 0 while any referenced schema is still unregistered (or the
    references form a cycle): such a record can't be decoded yet.
    """
    return _resolved_size(schema, registry, frozenset({schema.name})) or 0
