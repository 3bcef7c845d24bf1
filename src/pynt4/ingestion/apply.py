"""Ingestion application helpers.

This module centralizes the pattern shared by every ingest path:

- recognize schema definitions published under ``/.schema/`` and register them
- keep struct payloads as raw samples, labelled with their struct type
- decode struct and struct-array payloads into flattened per-field topics
- infer a value kind for plain payloads

The functions here only *build* :class:`~pynt4.state.events.TopicUpdate`
events; writing them (and the generation check) is the store's job.
"""

from __future__ import annotations

import logging
from typing import Any

from pynt4._constants import SCHEMA_PREFIX, STRUCT_TYPE_PREFIX
from pynt4._preview import preview_for_log
from pynt4.ingestion.normalize import (
    filter_elements,
    infer_array_kind,
    infer_column_kind,
    infer_kind,
    is_number,
)
from pynt4.state.events import TopicUpdate
from pynt4.state.series import ValueKind
from pynt4.structs.decode import decode, decode_struct_array
from pynt4.structs.schema import Schema, SchemaRegistry

_logger = logging.getLogger(__name__)

_ARRAY_KINDS = frozenset({ValueKind.DOUBLE_ARRAY, ValueKind.BOOLEAN_ARRAY, ValueKind.STRING_ARRAY})


def register_schema_topic(topic: str, value: Any, registry: SchemaRegistry) -> Schema | None:
    """Register the schema carried by a ``/.schema/<name>`` topic.

    Returns ``None`` for any other topic, or when the payload isn't text.
    """
    if not topic.startswith(SCHEMA_PREFIX):
        return None
    if isinstance(value, (bytes, bytearray)):
        try:
            text = bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            _logger.debug("Schema topic %s carries non UTF-8 payload", topic)
            return None
    elif isinstance(value, str):
        text = value
    else:
        return None
    return registry.register(topic[len(SCHEMA_PREFIX) :], text)


def parse_struct_type(type_str: str | None) -> tuple[str, bool] | None:
    """Split ``struct:Name`` / ``struct:Name[]`` into ``(Name, is_array)``."""
    if not type_str or not type_str.startswith(STRUCT_TYPE_PREFIX):
        return None
    name = type_str[len(STRUCT_TYPE_PREFIX) :]
    if name.endswith("[]"):
        return name[:-2], True
    return name, False


def _field_update(topic: str, timestamp: int, value: Any) -> TopicUpdate | None:
    if isinstance(value, bool):
        return TopicUpdate(topic=topic, timestamp=timestamp, kind=ValueKind.BOOLEAN, value=value)
    if is_number(value):
        return TopicUpdate(topic=topic, timestamp=timestamp, kind=ValueKind.DOUBLE, value=float(value))
    if isinstance(value, str):
        return TopicUpdate(topic=topic, timestamp=timestamp, kind=ValueKind.STRING, value=value)
    if isinstance(value, list):
        kind = infer_array_kind(value)
        if kind is None:
            return None
        return TopicUpdate(topic=topic, timestamp=timestamp, kind=kind, value=filter_elements(kind, value))
    return None


def build_struct_updates(
    *,
    topic: str,
    timestamp: int,
    schema: Schema,
    data: bytes,
    registry: SchemaRegistry,
) -> list[TopicUpdate]:
    """One update per decoded field of a single struct record, at ``topic/path``."""
    updates: list[TopicUpdate] = []
    for path, value in decode(schema, data, registry):
        update = _field_update(f"{topic}/{path}", timestamp, value)
        if update is not None:
            updates.append(update)
    return updates


def build_struct_array_updates(
    *,
    topic: str,
    timestamp: int,
    schema: Schema,
    data: bytes,
    registry: SchemaRegistry,
) -> list[TopicUpdate]:
    """One array update per field of a struct-array payload (struct-of-arrays)."""
    updates: list[TopicUpdate] = []
    for path, column in decode_struct_array(schema, data, registry).items():
        kind = infer_column_kind(column)
        if kind is None:
            continue
        updates.append(
            TopicUpdate(
                topic=f"{topic}/{path}",
                timestamp=timestamp,
                kind=kind,
                value=filter_elements(kind, column),
            )
        )
    return updates


def build_updates(
    *,
    topic: str,
    timestamp: int,
    type_str: str | None,
    value: Any,
    registry: SchemaRegistry,
) -> list[TopicUpdate]:
    """Translate one received sample into store updates.

    Struct payloads always produce a raw sample labelled with the struct
    type; decoded fields follow when the schema is already registered.
    Plain values are labelled with *type_str* and stored by inferred kind.
    """
    struct_type = parse_struct_type(type_str)
    if struct_type is not None and isinstance(value, (bytes, bytearray)):
        name, is_array = struct_type
        data = bytes(value)
        updates = [TopicUpdate(topic=topic, timestamp=timestamp, kind=ValueKind.RAW, value=data, type_label=type_str)]
        schema = registry.get(name)
        if schema is None:
            return updates
        builder = build_struct_array_updates if is_array else build_struct_updates
        updates.extend(builder(topic=topic, timestamp=timestamp, schema=schema, data=data, registry=registry))
        return updates

    kind = infer_kind(value)
    if kind is None:
        _logger.debug("Unhandled value for %s: %s", topic, preview_for_log(value))
        return []
    if kind in _ARRAY_KINDS:
        value = filter_elements(kind, value)
    elif kind is ValueKind.RAW:
        value = bytes(value)
    return [TopicUpdate(topic=topic, timestamp=timestamp, kind=kind, value=value, type_label=type_str or None)]
