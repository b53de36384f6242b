from __future__ import annotations

import pytest

from dprun.core.config import DPRunSettings, load_settings
from dprun.core.errors import SettingsError


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DPRUN_EXECUTABLE", "DPRUN_COMPAT_SHIM", "DPRUN_HOST_ADDRESS", "DPRUN_HOST_PORT"):
        monkeypatch.delenv(name, raising=False)
    assert load_settings() == DPRunSettings()
    assert load_settings().host_port == 2197


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DPRUN_EXECUTABLE", "C:\\games\\dprun.exe")
    monkeypatch.setenv("DPRUN_COMPAT_SHIM", "wine64")
    monkeypatch.setenv("DPRUN_HOST_ADDRESS", "0.0.0.0")
    monkeypatch.setenv("DPRUN_HOST_PORT", "47624")
    settings = load_settings()
    assert settings.executable == "C:\\games\\dprun.exe"
    assert settings.compat_shim == "wine64"
    assert settings.host_address == "0.0.0.0"
    assert settings.host_port == 47624


@pytest.mark.parametrize("raw", ["abc", "70000", "-1"])
def test_invalid_port_rejected(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("DPRUN_HOST_PORT", raw)
    with pytest.raises(SettingsError):
        load_settings()
