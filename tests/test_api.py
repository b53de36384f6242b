from __future__ import annotations

import sys
import uuid

import pytest

from dprun import api
from dprun.api import Client, DPRunSettings, Named

DPCHAT = uuid.UUID("5BFDB060-06A4-11d0-9C4F-00A0C905425E")


@pytest.fixture(autouse=True)
def isolated_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


def test_public_client_list_profiles() -> None:
    client = Client(settings=DPRunSettings())
    profiles = client.list_profiles()
    assert [p.id for p in profiles] == ["dpchat-ipx", "dpchat-tcpip"]


def test_public_client_prepare_from_profile() -> None:
    client = Client(settings=DPRunSettings())
    spec = client.profile_builder("dpchat-ipx").player_name("Ann").finish()
    session = client.prepare(spec, platform="linux")
    assert session.plan.argv[:3] == ("wine", "dprun.exe", "--host")
    assert session.handler is None


def test_unknown_profile_is_reported() -> None:
    client = Client(settings=DPRunSettings())
    with pytest.raises(api.ProfileLoadError):
        client.profile_builder("nope")


@pytest.mark.asyncio
async def test_public_client_start_runs_to_completion(tmp_path) -> None:
    script = tmp_path / "fake_dprun.py"
    script.write_text("import sys\nsys.exit(0)\n", encoding="utf-8")
    # The fake script receives the dprun arguments as its argv and ignores them.
    settings = DPRunSettings(executable=str(script), compat_shim=sys.executable)
    client = Client(settings=settings)
    spec = api.builder().host().player_name("P").application(DPCHAT).named_service_provider("TCPIP").finish()
    session = await client.start(spec)
    assert session.succeeded
    assert spec.service_provider == Named("TCPIP")
