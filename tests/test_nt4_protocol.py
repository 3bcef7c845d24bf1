from __future__ import annotations

import asyncio
import json
import struct
from typing import Any

import msgpack
import pytest
from aiohttp import test_utils, web

from pynt4._constants import MAX_TIMESTAMP, NT4_SUBPROTOCOLS
from pynt4._nt4 import Nt4Runtime
from pynt4.config import Nt4Config
from pynt4.exceptions import Nt4Error
from pynt4.ingestion.nt4 import (
    Nt4ControlMessage,
    TopicDirectory,
    build_subscribe_message,
    build_updates_from_values,
    decode_binary_frame,
    parse_text_frame,
)
from pynt4.state.store import TopicStore
from pynt4.structs.schema import SchemaRegistry


def _announce(name: str, topic_id: int, type_str: str) -> dict[str, Any]:
    return {"method": "announce", "params": {"name": name, "id": topic_id, "type": type_str, "pubuid": 1, "properties": {}}}


def _directory(*announcements: dict[str, Any]) -> TopicDirectory:
    directory = TopicDirectory()
    for message in parse_text_frame(json.dumps(list(announcements))):
        directory.apply(message)
    return directory


def test_subscribe_message_requests_all_values_by_prefix() -> None:
    (message,) = json.loads(build_subscribe_message(3))

    assert message["method"] == "subscribe"
    assert message["params"]["topics"] == [""]
    assert message["params"]["subuid"] == 3
    assert message["params"]["options"] == {"prefix": True, "all": True}


def test_parse_text_frame_skips_malformed_entries() -> None:
    messages = parse_text_frame(json.dumps([_announce("/a", 1, "double"), {"params": {}}, "junk"]))

    assert messages == [Nt4ControlMessage(method="announce", params=_announce("/a", 1, "double")["params"])]


def test_parse_text_frame_rejects_non_json() -> None:
    with pytest.raises(Nt4Error):
        parse_text_frame("not json")
    with pytest.raises(Nt4Error):
        parse_text_frame('{"method": "announce"}')


def test_directory_tracks_announce_unannounce_and_properties() -> None:
    directory = _directory(_announce("/a", 1, "double"), _announce("/b", 2, "string"))
    assert len(directory) == 2

    directory.apply(Nt4ControlMessage(method="properties", params={"name": "/a", "update": {"persistent": True}}))
    assert directory.get(1).properties == {"persistent": True}  # type: ignore[union-attr]

    directory.apply(Nt4ControlMessage(method="unannounce", params={"name": "/b", "id": 2}))
    assert directory.get(2) is None
    assert len(directory) == 1


def test_decode_binary_frame_reads_consecutive_values() -> None:
    frame = msgpack.packb([5, 100, 1, 1.5]) + msgpack.packb([6, 200, 4, "hi"]) + msgpack.packb("junk")

    values = decode_binary_frame(frame)

    assert [(v.topic_id, v.timestamp, v.type_name, v.value) for v in values] == [
        (5, 100, "double", 1.5),
        (6, 200, "string", "hi"),
    ]


def test_decode_binary_frame_rejects_corrupt_msgpack() -> None:
    with pytest.raises(Nt4Error):
        decode_binary_frame(b"\xc1")


def test_values_become_updates_and_schema_topics_register_first() -> None:
    directory = _directory(
        _announce("/.schema/struct:Translation2d", 1, "structschema"),
        _announce("/Robot/pos", 2, "struct:Translation2d"),
        _announce("/Robot/speed", 3, "double"),
    )
    registry = SchemaRegistry()
    frame = (
        msgpack.packb([1, 10, 5, b"double x;double y"])
        + msgpack.packb([2, 20, 5, struct.pack("<2d", 8.0, 3.0)])
        + msgpack.packb([3, 0, 1, 4.0])
        + msgpack.packb([-1, 30, 2, 123])
        + msgpack.packb([99, 30, 1, 1.0])
    )

    updates = build_updates_from_values(decode_binary_frame(frame), directory=directory, registry=registry)
    by_topic = {update.topic: update for update in updates}

    assert "Translation2d" in registry
    assert by_topic["/Robot/pos"].type_label == "struct:Translation2d"
    assert by_topic["/Robot/pos/x"].value == 8.0
    assert by_topic["/Robot/pos/y"].value == 3.0
    assert by_topic["/Robot/speed"].timestamp == 1
    assert by_topic["/.schema/struct:Translation2d"].type_label == "structschema"
    assert len(updates) == 5


def test_handle_binary_stops_once_generation_is_stale() -> None:
    store = TopicStore()
    generation = store.clear()
    runtime = Nt4Runtime(store=store, generation=generation, config=Nt4Config())
    runtime._handle_text(json.dumps([_announce("/speed", 7, "double")]))  # noqa: SLF001

    assert runtime._handle_binary(msgpack.packb([7, 100, 1, 2.5])) is True  # noqa: SLF001
    assert store.get_double("/speed", MAX_TIMESTAMP, 0.0) == 2.5

    store.clear()
    assert runtime._handle_binary(msgpack.packb([7, 200, 1, 3.5])) is False  # noqa: SLF001
    assert store.has_topic("/speed") is False
    assert runtime.is_running is False


def test_handle_binary_ignores_garbage_frames() -> None:
    store = TopicStore()
    runtime = Nt4Runtime(store=store, generation=store.clear(), config=Nt4Config())

    assert runtime._handle_binary(b"\xc1") is True  # noqa: SLF001
    assert store.topic_count == 0


@pytest.mark.asyncio
async def test_runtime_streams_values_from_server() -> None:
    store = TopicStore()
    generation = store.clear()
    received: list[Any] = []
    seen: dict[str, float] = {}

    async def handler(request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse(protocols=NT4_SUBPROTOCOLS)
        await ws.prepare(request)
        received.append(json.loads((await ws.receive()).data))
        await ws.send_str(json.dumps([_announce("/speed", 7, "double")]))
        await ws.send_bytes(msgpack.packb([7, 1000, 1, 2.5]))

        for _ in range(200):
            if store.has_topic("/speed"):
                break
            await asyncio.sleep(0.01)
        seen["/speed"] = store.get_double("/speed", MAX_TIMESTAMP, 0.0)

        # A new session supersedes this one; the next write must end the runtime.
        store.clear()
        await ws.send_bytes(msgpack.packb([7, 2000, 1, 9.0]))
        await ws.receive()
        return ws

    app = web.Application()
    app.router.add_get("/nt/{client}", handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        config = Nt4Config(server_host="127.0.0.1", server_port=server.port, reconnect_delay=0.01)  # type: ignore[arg-type]
        runtime = Nt4Runtime(store=store, generation=generation, config=config)
        await asyncio.wait_for(runtime.run(), timeout=5.0)
    finally:
        await server.close()

    assert received[0][0]["method"] == "subscribe"
    assert seen == {"/speed": 2.5}
    assert store.has_topic("/speed") is False
    assert runtime.is_running is False


def test_runtime_thread_stops_while_reconnecting() -> None:
    store = TopicStore()
    config = Nt4Config(server_host="127.0.0.1", server_port=1, reconnect_delay=0.05, connect_timeout=0.5)
    runtime = Nt4Runtime(store=store, generation=store.clear(), config=config)

    runtime.start()
    assert runtime.is_running is True

    runtime.stop(timeout=5.0)
    assert runtime.is_running is False
    assert store.topic_count == 0
