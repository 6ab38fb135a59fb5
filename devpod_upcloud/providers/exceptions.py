"""Provider error taxonomy shared by every lifecycle client implementation."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of provider failure categories."""

    UNKNOWN = "unknown"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_PARAMETER = "invalid_parameter"
    NETWORK_TIMEOUT = "network_timeout"
    SERVER_BUSY = "server_busy"
    PERMISSION_DENIED = "permission_denied"


class ProviderError(Exception):
    """Classified provider failure.

    Parameters
    ----------
    kind : ErrorKind
        Failure category
    message : str
        Human-readable description including the failed operation
    cause : BaseException | None
        Underlying exception, also chained as ``__cause__``
    """

    def __init__(
        self, kind: ErrorKind, message: str, cause: BaseException | None = None
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message

    def __repr__(self) -> str:
        return f"ProviderError(kind={self.kind.value!r}, message={self.message!r})"


class ConfigError(Exception):
    """Raised when the bundled plan catalog cannot be loaded or parsed.

    Never crosses the provider boundary: resolvers treat it as a signal to
    fall back to the static legacy tables.
    """
