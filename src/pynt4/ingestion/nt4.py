"""NT4 ingestion helpers.

This module translates NetworkTables 4 WebSocket frames into normalized
topic updates:

- JSON text frames carry control messages (``announce``, ``unannounce``,
  ``properties``) that maintain the id -> topic directory;
- msgpack binary frames carry ``[topic_id, timestamp_us, type_id, value]``
  samples.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import msgpack
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pynt4._constants import NT4_RTT_TOPIC_ID, NT4_TYPE_IDS
from pynt4.exceptions import Nt4Error
from pynt4.ingestion.apply import build_updates, register_schema_topic
from pynt4.ingestion.normalize import normalize_timestamp_micros
from pynt4.state.events import TopicUpdate
from pynt4.structs.schema import SchemaRegistry

_logger = logging.getLogger(__name__)


class Nt4ControlMessage(BaseModel):
    """One entry of a JSON text frame."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    method: str
    params: dict[str, Any] = Field(default_factory=dict)


class AnnouncedTopic(BaseModel):
    """``announce`` params: a topic the server will send values for."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    id: int
    type: str
    pubuid: int | None = None
    properties: dict[str, Any] = Field(default_factory=dict)


class _UnannounceParams(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    id: int


class _PropertiesParams(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    update: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class Nt4Value:
    """Decoded binary-frame sample."""

    topic_id: int
    timestamp: int
    type_id: int
    value: Any

    @property
    def type_name(self) -> str | None:
        return NT4_TYPE_IDS.get(self.type_id)


def build_subscribe_message(subuid: int, *, prefixes: tuple[str, ...] = ("",)) -> str:
    """JSON text frame subscribing to every topic under *prefixes*.

    ``all`` asks the server for every value change instead of the latest
    value per period, which is what a logger needs.
    """
    message = {
        "method": "subscribe",
        "params": {
            "topics": list(prefixes),
            "subuid": subuid,
            "options": {"prefix": True, "all": True},
        },
    }
    return json.dumps([message], separators=(",", ":"))


def parse_text_frame(text: str) -> list[Nt4ControlMessage]:
    """Parse a JSON text frame into control messages.

    Entries that don't look like control messages are skipped; a frame that
    isn't a JSON array raises :class:`~pynt4.exceptions.Nt4Error`.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise Nt4Error(f"NT4 text frame is not JSON: {text[:64]!r}") from exc
    if not isinstance(payload, list):
        raise Nt4Error("NT4 text frame is not a JSON array")

    messages: list[Nt4ControlMessage] = []
    for entry in payload:
        try:
            messages.append(Nt4ControlMessage.model_validate(entry))
        except ValidationError:
            _logger.debug("Skipping malformed NT4 control message: %s", entry)
    return messages


def decode_binary_frame(data: bytes) -> list[Nt4Value]:
    """Decode every ``[id, timestamp, type, value]`` array in a binary frame."""
    unpacker = msgpack.Unpacker(raw=False, strict_map_key=False)
    unpacker.feed(data)
    values: list[Nt4Value] = []
    try:
        for item in unpacker:
            if not isinstance(item, (list, tuple)) or len(item) != 4:
                _logger.debug("Skipping malformed NT4 value entry: %r", item)
                continue
            topic_id, timestamp, type_id, value = item
            if not isinstance(topic_id, int) or not isinstance(type_id, int):
                continue
            values.append(Nt4Value(topic_id=topic_id, timestamp=timestamp, type_id=type_id, value=value))
    except (msgpack.UnpackException, ValueError) as exc:
        raise Nt4Error(f"NT4 binary frame is not valid msgpack: {exc}") from exc
    return values


class TopicDirectory:
    """Topics announced by the server, keyed by their numeric id."""

    def __init__(self) -> None:
        self._by_id: dict[int, AnnouncedTopic] = {}

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, topic_id: int) -> AnnouncedTopic | None:
        return self._by_id.get(topic_id)

    def clear(self) -> None:
        self._by_id.clear()

    def apply(self, message: Nt4ControlMessage) -> None:
        """Update the directory from one control message."""
        try:
            if message.method == "announce":
                topic = AnnouncedTopic.model_validate(message.params)
                self._by_id[topic.id] = topic
                _logger.debug("New topic: %s (type=%s id=%s)", topic.name, topic.type, topic.id)
            elif message.method == "unannounce":
                params = _UnannounceParams.model_validate(message.params)
                self._by_id.pop(params.id, None)
                _logger.debug("Topic unannounced: %s (id=%s)", params.name, params.id)
            elif message.method == "properties":
                props = _PropertiesParams.model_validate(message.params)
                for topic_id, topic in list(self._by_id.items()):
                    if topic.name == props.name:
                        merged = {**topic.properties, **props.update}
                        merged = {k: v for k, v in merged.items() if v is not None}
                        self._by_id[topic_id] = topic.model_copy(update={"properties": merged})
        except ValidationError:
            _logger.debug("Ignoring malformed NT4 %s message", message.method, exc_info=True)


def build_updates_from_values(
    values: list[Nt4Value],
    *,
    directory: TopicDirectory,
    registry: SchemaRegistry,
) -> list[TopicUpdate]:
    """Translate decoded samples into store updates.

    Schema topics are registered before their own sample is stored so a
    struct value in the same frame can already be decoded.
    """
    updates: list[TopicUpdate] = []
    for sample in values:
        if sample.topic_id == NT4_RTT_TOPIC_ID:
            continue
        topic = directory.get(sample.topic_id)
        if topic is None:
            _logger.debug("Value for unannounced topic id %s", sample.topic_id)
            continue
        timestamp = normalize_timestamp_micros(sample.timestamp)
        register_schema_topic(topic.name, sample.value, registry)
        updates.extend(
            build_updates(
                topic=topic.name,
                timestamp=timestamp,
                type_str=topic.type,
                value=sample.value,
                registry=registry,
            )
        )
    return updates
