"""Classification of UpCloud API and transport failures.

Every failure observed at the provider boundary goes through ``classify`` so
that callers only ever deal with ``ProviderError`` and its ``ErrorKind``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import requests

from devpod_upcloud.providers.exceptions import ErrorKind, ProviderError
from devpod_upcloud.providers.upcloud.api import UpCloudProblem

logger = logging.getLogger(__name__)

_TEXT_PATTERNS: tuple[tuple[tuple[str, ...], ErrorKind], ...] = (
    (("401", "unauthorized"), ErrorKind.AUTHENTICATION),
    (("404", "not found"), ErrorKind.NOT_FOUND),
    (("timeout", "deadline exceeded"), ErrorKind.NETWORK_TIMEOUT),
    (("quota", "limit exceeded"), ErrorKind.QUOTA_EXCEEDED),
)


def _problem_message(status: int, operation: str, title: str) -> tuple[ErrorKind, str]:
    if status == 401:
        return (
            ErrorKind.AUTHENTICATION,
            "Invalid UpCloud credentials. Please check your username and password",
        )
    if status == 402:
        return (
            ErrorKind.QUOTA_EXCEEDED,
            "Payment required. Please check your UpCloud account billing status",
        )
    if status == 403:
        return (
            ErrorKind.PERMISSION_DENIED,
            f"Permission denied for {operation}. Please check your account permissions",
        )
    if status == 404:
        return ErrorKind.NOT_FOUND, f"Resource not found during {operation}"
    if status == 409:
        return (
            ErrorKind.SERVER_BUSY,
            f"Resource conflict during {operation}. "
            "The server may be in use or transitioning",
        )
    if status == 422:
        return (
            ErrorKind.INVALID_PARAMETER,
            f"Invalid parameters for {operation}: {title}",
        )
    if status == 429:
        return (
            ErrorKind.QUOTA_EXCEEDED,
            "Rate limit exceeded. Please wait a moment and try again",
        )
    if status == 503:
        return (
            ErrorKind.SERVER_BUSY,
            "UpCloud service temporarily unavailable. Please try again later",
        )
    return ErrorKind.UNKNOWN, f"UpCloud API error during {operation}: {title}"


def _text_message(kind: ErrorKind, operation: str) -> str:
    if kind is ErrorKind.AUTHENTICATION:
        return "Authentication failed. Please check your UpCloud credentials"
    if kind is ErrorKind.NOT_FOUND:
        return f"Resource not found during {operation}"
    if kind is ErrorKind.NETWORK_TIMEOUT:
        return f"Network timeout during {operation}. Please check your connection"
    if kind is ErrorKind.QUOTA_EXCEEDED:
        return "UpCloud account quota exceeded. Please check your account limits"
    return f"Error during {operation}"


def classify(error: BaseException | None, operation: str) -> ProviderError | None:
    """Map a raw failure to a ``ProviderError``.

    Rules are applied in priority order: an already classified error is
    returned unchanged, an API problem is mapped by HTTP status, a transport
    timeout becomes ``NETWORK_TIMEOUT``, then the message text is matched, and
    anything left is ``UNKNOWN``.

    Parameters
    ----------
    error : BaseException | None
        Failure observed at the provider boundary
    operation : str
        Human-readable name of the operation that failed

    Returns
    -------
    ProviderError | None
        Classified error, or None when ``error`` is None
    """
    if error is None:
        return None

    if isinstance(error, ProviderError):
        return error

    if isinstance(error, UpCloudProblem):
        kind, message = _problem_message(error.status, operation, error.title)
        return ProviderError(kind, message, error)

    if isinstance(error, requests.Timeout):
        return ProviderError(
            ErrorKind.NETWORK_TIMEOUT,
            _text_message(ErrorKind.NETWORK_TIMEOUT, operation),
            error,
        )

    text = str(error).lower()
    for needles, kind in _TEXT_PATTERNS:
        if any(needle in text for needle in needles):
            return ProviderError(kind, _text_message(kind, operation), error)

    return ProviderError(ErrorKind.UNKNOWN, f"Error during {operation}", error)


def _kind_of(error: BaseException | None) -> ErrorKind | None:
    if error is None:
        return None
    if isinstance(error, ProviderError):
        return error.kind
    return classify(error, "unknown operation").kind


def is_not_found(error: BaseException | None) -> bool:
    """Return True if the error means the resource does not exist."""
    return _kind_of(error) is ErrorKind.NOT_FOUND


def is_authentication(error: BaseException | None) -> bool:
    """Return True if the error is a credentials failure."""
    return _kind_of(error) is ErrorKind.AUTHENTICATION


def is_quota(error: BaseException | None) -> bool:
    """Return True if the error is a billing, quota or rate limit failure."""
    return _kind_of(error) is ErrorKind.QUOTA_EXCEEDED


@contextmanager
def handle_upcloud_errors(operation: str) -> Iterator[None]:
    """Classify any exception raised inside the block.

    Parameters
    ----------
    operation : str
        Operation name used in the classified message

    Raises
    ------
    ProviderError
        For every exception raised inside the block
    """
    try:
        yield
    except ProviderError:
        raise
    except Exception as e:
        provider_error = classify(e, operation)
        logger.debug("%s failed: %s (%s)", operation, e, provider_error.kind.value)
        raise provider_error from e
