"""Turn a :class:`SessionSpec` into the dprun command line."""

from __future__ import annotations

import sys

from dprun.core.config import DPRunSettings
from dprun.core.encoding import encode_address_part, format_guid_or_named, to_braced
from dprun.core.model import (
    DEFAULT_HOST_PORT,
    GUID_INETPORT,
    INETPORT_ALIAS,
    Host,
    LaunchPlan,
    Named,
    SessionSpec,
)


def _runs_natively(platform: str) -> bool:
    return platform == "win32"


def assemble(
    spec: SessionSpec,
    *,
    settings: DPRunSettings | None = None,
    platform: str | None = None,
) -> LaunchPlan:
    settings = settings or DPRunSettings()
    platform = platform or sys.platform

    args: list[str] = []
    if _runs_natively(platform):
        program = settings.executable
    else:
        program = settings.compat_shim
        args.append(settings.executable)

    if isinstance(spec.mode, Host):
        args.append("--host")
        if spec.mode.session_id is not None:
            args.append(to_braced(spec.mode.session_id))
    else:
        args.extend(["--join", to_braced(spec.mode.session_id)])

    args.extend(
        [
            "--player",
            spec.player_name,
            "--service-provider",
            format_guid_or_named(spec.service_provider),
            "--application",
            to_braced(spec.application),
        ]
    )

    for part in spec.address:
        args.extend(["--address", encode_address_part(part)])

    if spec.session_name is not None:
        args.extend(["--session-name", spec.session_name])
    if spec.session_password is not None:
        args.extend(["--session-password", spec.session_password])

    return LaunchPlan(program=program, args=tuple(args), cwd=spec.cwd)


def host_server_port(spec: SessionSpec, default: int = DEFAULT_HOST_PORT) -> int | None:
    """Port the DPRun service provider will connect back to.

    The service provider reads it from the ``INetPort`` address part, so the
    host server has to listen on the same port. ``None`` when no handler is set.
    """
    if spec.service_provider_handler is None:
        return None
    for part in spec.address:
        if part.key == GUID_INETPORT or part.key == Named(INETPORT_ALIAS):
            if isinstance(part.value, int) and not isinstance(part.value, bool):
                return part.value & 0xFFFF
            return DEFAULT_HOST_PORT
    return default
