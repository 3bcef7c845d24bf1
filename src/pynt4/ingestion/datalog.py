"""DataLog replay ingestion.

Translates decoded DataLog records into normalized topic updates. Struct
payloads stay raw on this path: schemas are not decoded during replay.
"""

from __future__ import annotations

from collections.abc import Iterator

from pynt4._datalog import DataLogReader
from pynt4.state.events import TopicUpdate
from pynt4.state.series import ValueKind

_TYPE_KINDS: dict[str, ValueKind] = {
    "boolean": ValueKind.BOOLEAN,
    "double": ValueKind.DOUBLE,
    "float": ValueKind.DOUBLE,
    "int64": ValueKind.DOUBLE,
    "string": ValueKind.STRING,
    "json": ValueKind.STRING,
    "boolean[]": ValueKind.BOOLEAN_ARRAY,
    "double[]": ValueKind.DOUBLE_ARRAY,
    "float[]": ValueKind.DOUBLE_ARRAY,
    "int64[]": ValueKind.DOUBLE_ARRAY,
    "string[]": ValueKind.STRING_ARRAY,
}


def kind_for_log_type(type_str: str) -> ValueKind:
    """Store kind for a DataLog entry type; unknown types are kept raw."""
    return _TYPE_KINDS.get(type_str, ValueKind.RAW)


def build_updates_from_log(reader: DataLogReader) -> Iterator[TopicUpdate]:
    """Yield one update per data record, in file order.

    The entry type becomes the topic's label; it is attached to the first
    sample of a topic and again when a restarted entry changes to another
    type of the same kind. A restart with a different kind keeps the old
    label, since the store rejects those samples.
    """
    labels: dict[str, str] = {}
    kinds: dict[str, ValueKind] = {}
    for entry, timestamp, value in reader.read_values():
        kind = kind_for_log_type(entry.type)
        established = kinds.setdefault(entry.name, kind)
        label: str | None = None
        if labels.get(entry.name) != entry.type and kind is established:
            labels[entry.name] = entry.type
            label = entry.type
        yield TopicUpdate(
            topic=entry.name,
            timestamp=timestamp,
            kind=kind,
            value=value,
            type_label=label,
        )
