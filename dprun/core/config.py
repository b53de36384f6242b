"""Configuration helpers read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dprun.core.errors import SettingsError
from dprun.core.model import DEFAULT_HOST_PORT


@dataclass(frozen=True)
class DPRunSettings:
    executable: str = "dprun.exe"
    compat_shim: str = "wine"
    host_address: str = "127.0.0.1"
    host_port: int = DEFAULT_HOST_PORT


def load_settings() -> DPRunSettings:
    port_raw = os.getenv("DPRUN_HOST_PORT", str(DEFAULT_HOST_PORT))
    try:
        port = int(port_raw)
    except ValueError as exc:
        raise SettingsError(f"DPRUN_HOST_PORT must be an integer, got '{port_raw}'") from exc
    if not 0 <= port <= 65535:
        raise SettingsError(f"DPRUN_HOST_PORT must be between 0 and 65535, got {port}")

    return DPRunSettings(
        executable=os.getenv("DPRUN_EXECUTABLE", "dprun.exe"),
        compat_shim=os.getenv("DPRUN_COMPAT_SHIM", "wine"),
        host_address=os.getenv("DPRUN_HOST_ADDRESS", "127.0.0.1"),
        host_port=port,
    )
