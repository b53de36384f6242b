"""Fluent builder for validated :class:`SessionSpec` instances."""

from __future__ import annotations

import uuid
from pathlib import Path

from dprun.core.errors import BuildFailure, SessionBuildError
from dprun.core.model import (
    DPRUN_ALIAS,
    AddressPart,
    AddressValue,
    GUIDOrNamed,
    Host,
    Join,
    Named,
    SessionMode,
    SessionSpec,
)
from dprun.server.base import ServiceProvider

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
# dprun reads text starting with these as numeric or binary values.
_TYPED_PREFIXES = ("i:", "b:")


def _check_address_value(value: AddressValue) -> AddressValue:
    if isinstance(value, bool) or not isinstance(value, (int, str, bytes, bytearray)):
        raise SessionBuildError(
            BuildFailure.INVALID_ADDRESS_VALUE,
            f"Address values must be int, str or bytes, got {type(value).__name__}",
        )
    if isinstance(value, int) and not _INT32_MIN <= value <= _INT32_MAX:
        raise SessionBuildError(
            BuildFailure.INVALID_ADDRESS_VALUE,
            f"Numeric address value {value} does not fit a signed 32-bit integer",
        )
    if isinstance(value, str) and value.startswith(_TYPED_PREFIXES):
        raise SessionBuildError(
            BuildFailure.INVALID_ADDRESS_VALUE,
            f"Text address value '{value}' would be read back as a typed value; "
            "pass an int or bytes instead",
        )
    if isinstance(value, bytearray):
        return bytes(value)
    return value


class SessionBuilder:
    """Collects dprun options; call :meth:`finish` to validate them.

    Every setter returns the builder so calls can be chained::

        spec = (
            SessionBuilder()
            .host()
            .player_name("Test")
            .application(dpchat)
            .service_provider(tcpip)
            .finish()
        )
    """

    def __init__(self) -> None:
        self._mode: SessionMode | None = None
        self._player_name: str | None = None
        self._service_provider: GUIDOrNamed | None = None
        self._handler: ServiceProvider | None = None
        self._application: uuid.UUID | None = None
        self._address: list[AddressPart] = []
        self._session_name: str | None = None
        self._session_password: str | None = None
        self._cwd: Path | None = None

    def host(self, session_id: uuid.UUID | None = None) -> SessionBuilder:
        self._mode = Host(session_id)
        return self

    def join(self, session_id: uuid.UUID) -> SessionBuilder:
        self._mode = Join(session_id)
        return self

    def player_name(self, player_name: str) -> SessionBuilder:
        self._player_name = player_name
        return self

    def service_provider(self, service_provider: uuid.UUID) -> SessionBuilder:
        self._service_provider = service_provider
        return self

    def named_service_provider(self, service_provider: str) -> SessionBuilder:
        self._service_provider = Named(service_provider)
        return self

    def service_provider_handler(self, handler: ServiceProvider) -> SessionBuilder:
        """Relay the application's DirectPlay messages to ``handler``.

        Selects the DPRUN service provider unless one was chosen already.
        """
        if self._service_provider is None:
            self.named_service_provider(DPRUN_ALIAS)
        self._handler = handler
        return self

    def application(self, application: uuid.UUID) -> SessionBuilder:
        self._application = application
        return self

    def session_name(self, session_name: str) -> SessionBuilder:
        self._session_name = session_name
        return self

    def session_password(self, session_password: str) -> SessionBuilder:
        self._session_password = session_password
        return self

    def cwd(self, cwd: Path | str) -> SessionBuilder:
        """Directory dprun.exe lives in (defaults to the current directory)."""
        self._cwd = Path(cwd)
        return self

    def address_part(self, data_type: uuid.UUID, value: AddressValue) -> SessionBuilder:
        self._address.append(AddressPart(key=data_type, value=_check_address_value(value)))
        return self

    def named_address_part(self, data_type: str, value: AddressValue) -> SessionBuilder:
        self._address.append(AddressPart(key=Named(data_type), value=_check_address_value(value)))
        return self

    def finish(self) -> SessionSpec:
        if self._mode is None:
            raise SessionBuildError(
                BuildFailure.MISSING_MODE, "Choose to host or join a session."
            )
        if self._player_name is None:
            raise SessionBuildError(
                BuildFailure.MISSING_PLAYER_NAME, "A player name is required."
            )
        if self._service_provider is None:
            raise SessionBuildError(
                BuildFailure.MISSING_SERVICE_PROVIDER, "A service provider is required."
            )
        if self._application is None:
            raise SessionBuildError(
                BuildFailure.MISSING_APPLICATION, "An application GUID is required."
            )

        spec = SessionSpec(
            mode=self._mode,
            player_name=self._player_name,
            service_provider=self._service_provider,
            application=self._application,
            address=tuple(self._address),
            session_name=self._session_name,
            session_password=self._session_password,
            cwd=self._cwd,
            service_provider_handler=self._handler,
        )
        if spec.uses_loopback_provider() and self._handler is None:
            raise SessionBuildError(
                BuildFailure.LOOPBACK_WITHOUT_HANDLER,
                "Must register a service provider handler to use the DPRun service provider.",
            )
        return spec
