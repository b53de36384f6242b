"""Core data models shared by the builder, launch plan, session, and CLI."""

from __future__ import annotations

import shlex
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from dprun.server.base import ServiceProvider

DEFAULT_HOST_PORT = 2197

# The DPRun service provider relays DirectPlay messages to a local host server.
GUID_DPRUNSP = uuid.UUID("B1ED2367-609B-4C5C-8755-D2A29BB9A554")
GUID_INETPORT = uuid.UUID("E4524541-8EA5-11D1-8A96-006097B01411")
DPRUN_ALIAS = "DPRUN"
INETPORT_ALIAS = "INetPort"


@dataclass(frozen=True)
class Named:
    """One of the named GUID aliases understood by dprun, e.g. ``TCPIP``."""

    name: str


GUIDOrNamed = Union[uuid.UUID, Named]
AddressValue = Union[int, str, bytes]


@dataclass(frozen=True)
class AddressPart:
    key: GUIDOrNamed
    value: AddressValue


@dataclass(frozen=True)
class Host:
    """Host a session; dprun generates a session GUID when none is given."""

    session_id: uuid.UUID | None = None


@dataclass(frozen=True)
class Join:
    session_id: uuid.UUID


SessionMode = Union[Host, Join]


@dataclass(frozen=True)
class SessionSpec:
    mode: SessionMode
    player_name: str
    service_provider: GUIDOrNamed
    application: uuid.UUID
    address: tuple[AddressPart, ...] = ()
    session_name: str | None = None
    session_password: str | None = None
    cwd: Path | None = None
    service_provider_handler: ServiceProvider | None = field(
        default=None, compare=False, repr=False
    )

    def uses_loopback_provider(self) -> bool:
        return self.service_provider in (GUID_DPRUNSP, Named(DPRUN_ALIAS))


@dataclass(frozen=True)
class LaunchPlan:
    program: str
    args: tuple[str, ...]
    cwd: Path | None = None

    @property
    def argv(self) -> tuple[str, ...]:
        return (self.program, *self.args)

    def command(self) -> str:
        """Shell-quoted command line, for logging and dry runs."""
        return shlex.join(self.argv)
