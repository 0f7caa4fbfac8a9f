"""Exception hierarchy for meshctl.

Every error carries a stable ``code`` that the service layer copies into
``ServiceError.code``.  Nothing in this hierarchy exits the process; the
CLI's single emitter decides the exit status.
"""

from __future__ import annotations

from typing import Any


class MeshctlError(Exception):
    """Base class for all expected meshctl failures."""

    code = "MESHCTL_ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail or {}


class ConfigError(MeshctlError):
    code = "CONFIG_INVALID"


class TokenError(ConfigError):
    code = "TOKEN_INVALID"


class SessionDataError(MeshctlError):
    code = "SESSION_UNAVAILABLE"


class AdapterUnavailableError(MeshctlError):
    code = "ADAPTER_UNAVAILABLE"


class InvalidOperationError(MeshctlError):
    code = "INVALID_OPERATION"


class RequestBuildError(MeshctlError):
    """The request could not be constructed (e.g. malformed base URL)."""

    code = "REQUEST_INVALID"


class RequestFailedError(MeshctlError):
    """The request was built but sending it failed or the server refused it."""

    code = "REQUEST_FAILED"


class StreamError(MeshctlError):
    """The event stream could not be decoded or closed before a result."""

    code = "STREAM_FAILED"


class WaitTimeoutError(MeshctlError):
    code = "WATCH_TIMEOUT"


class ConformanceFailedError(MeshctlError):
    code = "CONFORMANCE_FAILED"
