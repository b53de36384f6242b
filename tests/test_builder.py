from __future__ import annotations

import uuid
from pathlib import Path

import pytest

from dprun.core.builder import SessionBuilder
from dprun.core.errors import BuildFailure, SessionBuildError
from dprun.core.model import GUID_DPRUNSP, Host, Join, Named

DPCHAT = uuid.UUID("5BFDB060-06A4-11d0-9C4F-00A0C905425E")
TCPIP = uuid.UUID("36E95EE0-8577-11cf-960c-0080c7534e82")


class FakeHandler:
    async def enum_sessions(self, controller, payload):
        return None


def _complete() -> SessionBuilder:
    return SessionBuilder().host().player_name("Test").service_provider(TCPIP).application(DPCHAT)


def test_finish_with_required_fields() -> None:
    spec = _complete().finish()
    assert spec.mode == Host(None)
    assert spec.player_name == "Test"
    assert spec.service_provider == TCPIP
    assert spec.application == DPCHAT
    assert spec.address == ()
    assert spec.cwd is None


@pytest.mark.parametrize(
    ("builder", "kind"),
    [
        (SessionBuilder().player_name("a").service_provider(TCPIP).application(DPCHAT), BuildFailure.MISSING_MODE),
        (SessionBuilder().host().service_provider(TCPIP).application(DPCHAT), BuildFailure.MISSING_PLAYER_NAME),
        (SessionBuilder().host().player_name("a").application(DPCHAT), BuildFailure.MISSING_SERVICE_PROVIDER),
        (SessionBuilder().host().player_name("a").service_provider(TCPIP), BuildFailure.MISSING_APPLICATION),
    ],
)
def test_missing_required_fields(builder: SessionBuilder, kind: BuildFailure) -> None:
    with pytest.raises(SessionBuildError) as excinfo:
        builder.finish()
    assert excinfo.value.kind is kind


def test_loopback_alias_without_handler_fails() -> None:
    builder = _complete().named_service_provider("DPRUN")
    with pytest.raises(SessionBuildError) as excinfo:
        builder.finish()
    assert excinfo.value.kind is BuildFailure.LOOPBACK_WITHOUT_HANDLER


def test_loopback_guid_without_handler_fails() -> None:
    builder = _complete().service_provider(GUID_DPRUNSP)
    with pytest.raises(SessionBuildError) as excinfo:
        builder.finish()
    assert excinfo.value.kind is BuildFailure.LOOPBACK_WITHOUT_HANDLER


def test_handler_selects_loopback_provider_when_unset() -> None:
    handler = FakeHandler()
    spec = (
        SessionBuilder()
        .host()
        .player_name("Test")
        .application(DPCHAT)
        .service_provider_handler(handler)
        .finish()
    )
    assert spec.service_provider == Named("DPRUN")
    assert spec.uses_loopback_provider()
    assert spec.service_provider_handler is handler


def test_handler_keeps_explicit_provider() -> None:
    spec = _complete().service_provider_handler(FakeHandler()).finish()
    assert spec.service_provider == TCPIP


def test_loopback_guid_with_handler_succeeds() -> None:
    spec = _complete().service_provider(GUID_DPRUNSP).service_provider_handler(FakeHandler()).finish()
    assert spec.service_provider == GUID_DPRUNSP
    assert spec.uses_loopback_provider()


def test_provider_last_write_wins() -> None:
    spec = _complete().named_service_provider("IPX").service_provider(TCPIP).finish()
    assert spec.service_provider == TCPIP
    spec = _complete().service_provider(TCPIP).named_service_provider("IPX").finish()
    assert spec.service_provider == Named("IPX")


def test_join_and_optional_fields() -> None:
    session_id = uuid.uuid4()
    spec = (
        _complete()
        .join(session_id)
        .session_name("Lobby")
        .session_password("hunter2")
        .cwd("/opt/dprun")
        .named_address_part("INet", "127.0.0.1")
        .address_part(TCPIP, bytearray(b"\x01"))
        .finish()
    )
    assert spec.mode == Join(session_id)
    assert spec.session_name == "Lobby"
    assert spec.session_password == "hunter2"
    assert spec.cwd == Path("/opt/dprun")
    assert [part.key for part in spec.address] == [Named("INet"), TCPIP]
    assert spec.address[1].value == b"\x01"


@pytest.mark.parametrize("value", [2**31, -(2**31) - 1, True, 1.5, None])
def test_invalid_address_values_rejected(value) -> None:
    with pytest.raises(SessionBuildError) as excinfo:
        _complete().named_address_part("INetPort", value)
    assert excinfo.value.kind is BuildFailure.INVALID_ADDRESS_VALUE


def test_int32_bounds_accepted() -> None:
    spec = _complete().named_address_part("a", 2**31 - 1).named_address_part("b", -(2**31)).finish()
    assert [part.value for part in spec.address] == [2**31 - 1, -(2**31)]


def test_specs_compare_structurally() -> None:
    assert _complete().finish() == _complete().finish()


@pytest.mark.parametrize("value", ["i:5", "b:0aff"])
def test_text_values_that_look_typed_are_rejected(value: str) -> None:
    with pytest.raises(SessionBuildError) as excinfo:
        _complete().named_address_part("K", value)
    assert excinfo.value.kind is BuildFailure.INVALID_ADDRESS_VALUE


def test_text_values_with_other_colons_are_kept() -> None:
    spec = _complete().named_address_part("Phone", "x:1").named_address_part("INet", "::1").finish()
    assert [part.value for part in spec.address] == ["x:1", "::1"]
