"""Internal NT4 WebSocket runtime."""

from __future__ import annotations

import asyncio
import logging
import threading

import aiohttp

from pynt4._constants import NT4_SUBPROTOCOLS
from pynt4.config import Nt4Config
from pynt4.exceptions import Nt4Error, Nt4TransportError, TopicKindMismatchError
from pynt4.ingestion.nt4 import (
    TopicDirectory,
    build_subscribe_message,
    build_updates_from_values,
    decode_binary_frame,
    parse_text_frame,
)
from pynt4.state.events import IngestionSource
from pynt4.state.store import TopicStore
from pynt4.structs.schema import SchemaRegistry

_SUBSCRIPTION_UID = 1


class Nt4Runtime:
    """Threaded asyncio runtime that streams NT4 values into one store generation.

    The runtime writes only while its generation is current: every write
    goes through :meth:`TopicStore.apply`, and the first rejected write ends
    the receive loop. :meth:`stop` additionally cancels the loop at its
    receive suspension point.
    """

    def __init__(
        self,
        *,
        store: TopicStore,
        generation: int,
        config: Nt4Config,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._generation = generation
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self._registry = SchemaRegistry()
        self._directory = TopicDirectory()
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task[None] | None = None
        self._loop_ready = threading.Event()
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the receive loop is active."""
        return self._running

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    @property
    def directory(self) -> TopicDirectory:
        return self._directory

    def start(self) -> None:
        """Spawn the background thread and its event loop."""
        if self._thread is not None:
            return
        self._logger.debug(
            "NT4 runtime start requested url=%s generation=%s",
            self._config.url,
            self._generation,
        )
        self._running = True
        thread = threading.Thread(
            target=self._thread_main,
            name=f"pynt4-runtime-{self._generation}",
            daemon=True,
        )
        self._thread = thread
        thread.start()
        self._loop_ready.wait(timeout=5.0)

    def stop(self, timeout: float = 5.0) -> None:
        """Cancel the receive loop and wait for the thread to exit."""
        self._running = False
        loop, task = self._loop, self._task
        if loop is not None and task is not None:
            try:
                loop.call_soon_threadsafe(task.cancel)
            except RuntimeError:
                # Loop already closed: the thread is finishing on its own.
                pass
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                self._logger.warning("NT4 runtime thread did not stop within %.1fs", timeout)

    def _thread_main(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        try:
            self._task = loop.create_task(self.run())
            self._loop_ready.set()
            loop.run_until_complete(self._task)
        except asyncio.CancelledError:
            self._logger.debug("NT4 runtime cancelled (generation=%s)", self._generation)
        finally:
            self._running = False
            self._loop_ready.set()
            loop.close()
            self._logger.debug("NT4 runtime thread ended (generation=%s)", self._generation)

    async def run(self) -> None:
        """Connect, receive and reconnect until stopped or superseded."""
        self._running = True
        async with aiohttp.ClientSession() as session:
            while self._running:
                if not self._store.check_generation(self._generation):
                    self._logger.info("NT4 generation %s superseded, stopping", self._generation)
                    break
                try:
                    if not await self._receive(session):
                        break
                except Nt4TransportError as exc:
                    self._logger.warning("NT4 connection to %s failed: %s", exc.url, exc)
                if self._running:
                    await asyncio.sleep(self._config.reconnect_delay)
        self._running = False

    async def _connect(self, session: aiohttp.ClientSession) -> aiohttp.ClientWebSocketResponse:
        url = self._config.url
        try:
            return await asyncio.wait_for(
                session.ws_connect(url, protocols=NT4_SUBPROTOCOLS),
                self._config.connect_timeout,
            )
        except TimeoutError as exc:
            raise Nt4TransportError(f"Timed out connecting to {url}", url=url) from exc
        except aiohttp.ClientError as exc:
            raise Nt4TransportError(f"Connection to {url} failed: {exc}", url=url) from exc

    async def _receive(self, session: aiohttp.ClientSession) -> bool:
        """Run one connection. Returns ``False`` once the generation went stale."""
        ws = await self._connect(session)
        self._logger.info("NT4 connected to %s (protocol=%s)", self._config.url, ws.protocol)
        self._directory.clear()
        try:
            await ws.send_str(build_subscribe_message(_SUBSCRIPTION_UID))
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._handle_text(msg.data)
                elif msg.type == aiohttp.WSMsgType.BINARY:
                    if not self._handle_binary(msg.data):
                        return False
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    raise Nt4TransportError(f"WebSocket error: {ws.exception()}", url=self._config.url)
        except aiohttp.ClientError as exc:
            raise Nt4TransportError(f"WebSocket receive failed: {exc}", url=self._config.url) from exc
        finally:
            await ws.close()
        self._logger.info("NT4 server closed the connection (code=%s)", ws.close_code)
        return True

    def _handle_text(self, text: str) -> None:
        try:
            messages = parse_text_frame(text)
        except Nt4Error:
            self._logger.debug("NT4 text frame parse failure", exc_info=True)
            return
        for message in messages:
            self._directory.apply(message)

    def _handle_binary(self, data: bytes) -> bool:
        """Decode and store one binary frame. Returns ``False`` on a stale generation."""
        try:
            values = decode_binary_frame(data)
        except Nt4Error:
            self._logger.debug("NT4 binary frame parse failure", exc_info=True)
            return True

        updates = build_updates_from_values(values, directory=self._directory, registry=self._registry)
        try:
            accepted = self._store.apply(self._generation, updates, source=IngestionSource.NT4)
        except TopicKindMismatchError as exc:
            self._logger.warning("%s", exc)
            return True
        if not accepted:
            self._logger.info(
                "NT4 generation mismatch (%s vs %s), stopping",
                self._generation,
                self._store.generation,
            )
            self._running = False
        return accepted
