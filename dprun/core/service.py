"""Service layer used by the CLI and the public API."""

from __future__ import annotations

import asyncio
import shutil
import sys

from dprun.core.builder import SessionBuilder
from dprun.core.config import DPRunSettings, load_settings
from dprun.core.errors import ProfileLoadError
from dprun.core.model import SessionSpec
from dprun.core.profile_loader import Profile, load_profiles
from dprun.core.session import DPRun, ServerFactory, run
from dprun.server.host_server import HostServer


class LauncherService:
    def __init__(
        self,
        *,
        settings: DPRunSettings | None = None,
        server_factory: ServerFactory = HostServer,
    ) -> None:
        loaded = load_profiles()
        self.profiles = loaded.profiles
        self.load_warnings = loaded.warnings
        self.settings = settings or load_settings()
        self.runtime_warnings = _runtime_warnings(self.settings)
        self.server_factory = server_factory

    def list_profiles(self) -> list[Profile]:
        return sorted(self.profiles.values(), key=lambda p: p.id)

    def profile_builder(self, profile_id: str) -> SessionBuilder:
        profile = self.profiles.get(profile_id)
        if profile is None:
            raise ProfileLoadError(
                f"Unknown profile '{profile_id}'. Use 'dprun profiles' to inspect available profiles."
            )
        return profile.builder()

    def prepare(self, spec: SessionSpec, *, platform: str | None = None) -> DPRun:
        return run(
            spec,
            settings=self.settings,
            platform=platform,
            server_factory=self.server_factory,
        )

    def launch(self, session: DPRun) -> DPRun:
        """Run ``session`` to completion on a fresh event loop."""
        asyncio.run(session.start())
        return session


def _runtime_warnings(settings: DPRunSettings) -> tuple[str, ...]:
    warnings: list[str] = []
    if sys.platform != "win32" and shutil.which(settings.compat_shim) is None:
        warnings.append(
            f"'{settings.compat_shim}' was not found on PATH; dprun.exe cannot be started on this system."
        )
    return tuple(warnings)
