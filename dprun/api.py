"""Stable public API for launching dprun sessions from Python.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from dprun.core.builder import SessionBuilder
from dprun.core.config import DPRunSettings, load_settings
from dprun.core.encoding import encode_address_part, format_guid_or_named, to_braced
from dprun.core.errors import (
    BuildFailure,
    CallbackServerError,
    DPRunError,
    DPRunExitError,
    LaunchError,
    ProfileLoadError,
    ProfileValidationError,
    SessionBuildError,
    SessionStateError,
    SettingsError,
)
from dprun.core.model import (
    DEFAULT_HOST_PORT,
    GUID_DPRUNSP,
    GUID_INETPORT,
    AddressPart,
    Host,
    Join,
    LaunchPlan,
    Named,
    SessionSpec,
)
from dprun.core.plan import assemble
from dprun.core.profile_loader import Profile
from dprun.core.service import LauncherService
from dprun.core.session import DPRun, SessionState, run
from dprun.server.base import AppController, MessageKind, ServiceProvider

__all__ = [
    "DPRunError",
    "SettingsError",
    "ProfileLoadError",
    "ProfileValidationError",
    "BuildFailure",
    "SessionBuildError",
    "SessionStateError",
    "LaunchError",
    "CallbackServerError",
    "DPRunExitError",
    "DEFAULT_HOST_PORT",
    "GUID_DPRUNSP",
    "GUID_INETPORT",
    "AddressPart",
    "Host",
    "Join",
    "LaunchPlan",
    "Named",
    "SessionSpec",
    "SessionBuilder",
    "DPRunSettings",
    "load_settings",
    "to_braced",
    "format_guid_or_named",
    "encode_address_part",
    "assemble",
    "Profile",
    "DPRun",
    "SessionState",
    "run",
    "AppController",
    "MessageKind",
    "ServiceProvider",
    "Client",
    "builder",
]


def builder() -> SessionBuilder:
    """Start describing a dprun session."""
    return SessionBuilder()


class Client:
    """Public client for profile-driven dprun sessions.

    A `Client` wraps profile loading, settings, and session launching behind a
    stable API intended for third-party tools (lobby servers, GUIs, scripts).
    """

    def __init__(self, *, settings: DPRunSettings | None = None) -> None:
        self._service = LauncherService(settings=settings)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    @property
    def runtime_warnings(self) -> tuple[str, ...]:
        return self._service.runtime_warnings

    def list_profiles(self) -> list[Profile]:
        return self._service.list_profiles()

    def profile_builder(self, profile_id: str) -> SessionBuilder:
        return self._service.profile_builder(profile_id)

    def prepare(self, spec: SessionSpec, *, platform: str | None = None) -> DPRun:
        return self._service.prepare(spec, platform=platform)

    async def start(self, spec: SessionSpec) -> DPRun:
        """Run a session to completion inside the caller's event loop."""
        session = self._service.prepare(spec)
        await session.start()
        return session
