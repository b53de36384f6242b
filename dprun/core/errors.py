"""Domain-specific errors for dprun."""

from __future__ import annotations

import enum


class DPRunError(Exception):
    """Base error for dprun."""


class SettingsError(DPRunError):
    """Raised when environment configuration cannot be parsed."""


class ProfileValidationError(DPRunError):
    """Raised when a profile file does not conform to schema or semantics."""


class ProfileLoadError(DPRunError):
    """Raised when loading profile sources fails."""


class BuildFailure(enum.Enum):
    MISSING_MODE = "missing_mode"
    MISSING_PLAYER_NAME = "missing_player_name"
    MISSING_SERVICE_PROVIDER = "missing_service_provider"
    MISSING_APPLICATION = "missing_application"
    LOOPBACK_WITHOUT_HANDLER = "loopback_without_handler"
    INVALID_ADDRESS_VALUE = "invalid_address_value"


class SessionBuildError(DPRunError):
    """Raised when session options are incomplete or contradictory."""

    def __init__(self, kind: BuildFailure, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class SessionStateError(DPRunError):
    """Raised when a session is started more than once."""


class LaunchError(DPRunError):
    """Raised when the dprun process could not be spawned."""


class CallbackServerError(DPRunError):
    """Raised when the host server for the DPRun service provider fails to start."""


class DPRunExitError(DPRunError):
    """Raised when dprun exits with a nonzero or missing status code."""

    def __init__(self, returncode: int | None) -> None:
        status = "no status code" if returncode is None else f"status {returncode}"
        super().__init__(f"dprun exited with {status}")
        self.returncode = returncode
