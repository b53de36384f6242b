"""Service provider handler interface for the DPRun host server."""

from __future__ import annotations

import asyncio
import enum
import struct
from typing import Protocol

_HEADER = struct.Struct("<I")


class MessageKind(enum.IntEnum):
    ENUM_SESSIONS = 1
    OPEN = 2
    CREATE_PLAYER = 3
    DESTROY_PLAYER = 4
    SEND = 5
    REPLY = 6
    CLOSE = 7


def encode_frame(kind: int, payload: bytes) -> bytes:
    """Frame layout: u32 length, u32 message kind, payload (little endian)."""
    return _HEADER.pack(_HEADER.size + len(payload)) + _HEADER.pack(kind) + payload


async def read_frame(reader: asyncio.StreamReader) -> tuple[int, bytes]:
    (length,) = _HEADER.unpack(await reader.readexactly(_HEADER.size))
    if length < _HEADER.size:
        raise ValueError(f"frame length {length} is shorter than its header")
    body = await reader.readexactly(length)
    (kind,) = _HEADER.unpack_from(body)
    return kind, body[_HEADER.size:]


class AppController:
    """Lets a handler push messages to the connected DirectPlay application."""

    def __init__(self, writer: asyncio.StreamWriter) -> None:
        self._writer = writer

    @property
    def peer(self) -> str:
        peername = self._writer.get_extra_info("peername")
        return str(peername) if peername else "<unknown>"

    async def send(self, kind: MessageKind, payload: bytes) -> None:
        self._writer.write(encode_frame(kind, payload))
        await self._writer.drain()


class ServiceProvider(Protocol):
    """Receives the DirectPlay messages relayed by the DPRun service provider.

    Each method gets the raw message payload; returning bytes sends a reply
    frame of the same kind back to the application.
    """

    async def enum_sessions(self, controller: AppController, payload: bytes) -> bytes | None: ...

    async def open(self, controller: AppController, payload: bytes) -> bytes | None: ...

    async def create_player(self, controller: AppController, payload: bytes) -> bytes | None: ...

    async def destroy_player(self, controller: AppController, payload: bytes) -> bytes | None: ...

    async def send(self, controller: AppController, payload: bytes) -> bytes | None: ...

    async def reply(self, controller: AppController, payload: bytes) -> bytes | None: ...

    async def close(self, controller: AppController, payload: bytes) -> bytes | None: ...
