"""Local TCP server the DPRun service provider connects back to."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Generator
from typing import Any

from dprun.core.errors import CallbackServerError
from dprun.server.base import AppController, MessageKind, ServiceProvider, read_frame

LOGGER = logging.getLogger(__name__)

_HANDLER_METHODS = {
    MessageKind.ENUM_SESSIONS: "enum_sessions",
    MessageKind.OPEN: "open",
    MessageKind.CREATE_PLAYER: "create_player",
    MessageKind.DESTROY_PLAYER: "destroy_player",
    MessageKind.SEND: "send",
    MessageKind.REPLY: "reply",
    MessageKind.CLOSE: "close",
}


class StopController:
    """Signals a running host server to shut down. Safe to call repeatedly."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._event.is_set()

    def stop(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class RunningServer:
    """Awaitable handle that resolves once the server released its sockets."""

    def __init__(self, server: asyncio.Server, task: asyncio.Task[None]) -> None:
        self._server = server
        self._task = task

    @property
    def port(self) -> int:
        return self._server.sockets[0].getsockname()[1]

    def done(self) -> bool:
        return self._task.done()

    def __await__(self) -> Generator[Any, None, None]:
        return self._task.__await__()


class HostServer:
    def __init__(
        self,
        port: int,
        handler: ServiceProvider,
        *,
        host: str = "127.0.0.1",
    ) -> None:
        self.host = host
        self.port = port
        self.handler = handler
        self._clients: set[asyncio.Task[None]] = set()

    async def start(self) -> tuple[RunningServer, StopController]:
        try:
            server = await asyncio.start_server(self._on_connect, self.host, self.port)
        except OSError as exc:
            raise CallbackServerError(
                f"Could not start host server on {self.host}:{self.port}: {exc}"
            ) from exc

        controller = StopController()
        task = asyncio.create_task(self._serve_until_stopped(server, controller))
        running = RunningServer(server, task)
        LOGGER.info("host server listening on %s:%s", self.host, running.port)
        return running, controller

    async def _serve_until_stopped(self, server: asyncio.Server, controller: StopController) -> None:
        async with server:
            await controller.wait()
            LOGGER.info("host server shutting down")
            server.close()
            for client in list(self._clients):
                client.cancel()
            if self._clients:
                await asyncio.gather(*self._clients, return_exceptions=True)
        LOGGER.info("host server stopped")

    async def _on_connect(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._clients.add(task)
        controller = AppController(writer)
        LOGGER.debug("application connected from %s", controller.peer)
        try:
            await self._serve_client(reader, controller)
        finally:
            self._clients.discard(task)
            writer.close()

    async def _serve_client(self, reader: asyncio.StreamReader, controller: AppController) -> None:
        while True:
            try:
                kind, payload = await read_frame(reader)
            except (asyncio.IncompleteReadError, ConnectionError):
                LOGGER.debug("application %s disconnected", controller.peer)
                return
            except ValueError as exc:
                LOGGER.warning("dropping connection from %s: %s", controller.peer, exc)
                return

            try:
                message = MessageKind(kind)
            except ValueError:
                LOGGER.warning("ignoring unknown message kind %d from %s", kind, controller.peer)
                continue

            method = getattr(self.handler, _HANDLER_METHODS[message], None)
            if method is None:
                LOGGER.warning("service provider handler does not implement %s", _HANDLER_METHODS[message])
                continue
            try:
                reply = await method(controller, payload)
            except Exception:
                LOGGER.exception("service provider handler failed on %s", message.name)
                return
            if reply is None:
                continue
            try:
                await controller.send(message, reply)
            except ConnectionError as exc:
                LOGGER.warning("could not reply to %s: %s", controller.peer, exc)
                return
