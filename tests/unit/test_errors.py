"""Unit tests for UpCloud error classification."""

from unittest.mock import MagicMock

import pytest
import requests

from devpod_upcloud.providers.exceptions import ErrorKind, ProviderError
from devpod_upcloud.providers.upcloud.api import UpCloudProblem, WaitTimeoutError
from devpod_upcloud.providers.upcloud.errors import (
    classify,
    handle_upcloud_errors,
    is_authentication,
    is_not_found,
    is_quota,
)


def test_classify_none() -> None:
    """Test classifying no error yields no error."""
    assert classify(None, "server creation") is None


def test_classify_provider_error_unchanged() -> None:
    """Test an already classified error is returned as-is."""
    original = ProviderError(ErrorKind.SERVER_BUSY, "busy")

    assert classify(original, "server stop") is original


@pytest.mark.parametrize(
    "status,kind",
    [
        (401, ErrorKind.AUTHENTICATION),
        (402, ErrorKind.QUOTA_EXCEEDED),
        (403, ErrorKind.PERMISSION_DENIED),
        (404, ErrorKind.NOT_FOUND),
        (409, ErrorKind.SERVER_BUSY),
        (422, ErrorKind.INVALID_PARAMETER),
        (429, ErrorKind.QUOTA_EXCEEDED),
        (503, ErrorKind.SERVER_BUSY),
        (500, ErrorKind.UNKNOWN),
    ],
)
def test_classify_problem_by_status(status: int, kind: ErrorKind) -> None:
    """Test API problems are classified by HTTP status."""
    problem = UpCloudProblem(status, "Something happened")

    error = classify(problem, "server creation")

    assert error.kind is kind
    assert error.cause is problem
    assert error.__cause__ is problem


def test_classify_problem_messages_name_operation() -> None:
    """Test operation-specific messages for API problems."""
    assert "server stop" in classify(UpCloudProblem(404, "x"), "server stop").message
    assert "server stop" in classify(UpCloudProblem(403, "x"), "server stop").message

    invalid = classify(UpCloudProblem(422, "PLAN_INVALID"), "server creation")
    assert "server creation" in invalid.message
    assert "PLAN_INVALID" in invalid.message


def test_classify_status_wins_over_text() -> None:
    """Test the HTTP status is used even if the title suggests another kind."""
    problem = UpCloudProblem(409, "quota not found timeout")

    assert classify(problem, "server start").kind is ErrorKind.SERVER_BUSY


def test_classify_requests_timeout() -> None:
    """Test transport timeouts are network timeouts."""
    error = classify(requests.ConnectTimeout("connect"), "listing servers")

    assert error.kind is ErrorKind.NETWORK_TIMEOUT
    assert "listing servers" in error.message


@pytest.mark.parametrize(
    "message,kind",
    [
        ("HTTP 401 returned", ErrorKind.AUTHENTICATION),
        ("Unauthorized request", ErrorKind.AUTHENTICATION),
        ("resource not found", ErrorKind.NOT_FOUND),
        ("status 404", ErrorKind.NOT_FOUND),
        ("context deadline exceeded", ErrorKind.NETWORK_TIMEOUT),
        ("read timeout", ErrorKind.NETWORK_TIMEOUT),
        ("Quota reached", ErrorKind.QUOTA_EXCEEDED),
        ("server limit exceeded", ErrorKind.QUOTA_EXCEEDED),
        ("something else", ErrorKind.UNKNOWN),
    ],
)
def test_classify_by_text(message: str, kind: ErrorKind) -> None:
    """Test unstructured errors are classified by message text."""
    assert classify(RuntimeError(message), "delete").kind is kind


def test_classify_wait_timeout_is_network_timeout() -> None:
    """Test a wait-for-state timeout is a network timeout."""
    error = classify(WaitTimeoutError("timeout waiting for server"), "waiting")

    assert error.kind is ErrorKind.NETWORK_TIMEOUT


def test_classify_unknown_keeps_operation_and_cause() -> None:
    """Test fallback classification keeps the operation and cause."""
    cause = RuntimeError("boom")

    error = classify(cause, "server creation")

    assert error.kind is ErrorKind.UNKNOWN
    assert error.message == "Error during server creation"
    assert error.cause is cause
    assert str(error) == "Error during server creation: boom"


def test_classify_is_deterministic() -> None:
    """Test equal inputs produce equal kinds and messages."""
    first = classify(UpCloudProblem(429, "slow down"), "listing servers")
    second = classify(UpCloudProblem(429, "slow down"), "listing servers")

    assert (first.kind, first.message) == (second.kind, second.message)


def test_predicates() -> None:
    """Test the classification predicates accept any exception."""
    assert is_not_found(UpCloudProblem(404, "Server not found"))
    assert is_not_found(ProviderError(ErrorKind.NOT_FOUND, "gone"))
    assert is_authentication(UpCloudProblem(401, "Unauthorized"))
    assert is_quota(UpCloudProblem(402, "Payment required"))
    assert is_quota(RuntimeError("quota exhausted"))

    assert not is_not_found(None)
    assert not is_not_found(RuntimeError("boom"))
    assert not is_authentication(UpCloudProblem(404, "x"))


def test_handle_upcloud_errors_classifies() -> None:
    """Test the context manager classifies and chains raw errors."""
    problem = UpCloudProblem(404, "Server not found")

    with pytest.raises(ProviderError) as exc_info:
        with handle_upcloud_errors("server deletion"):
            raise problem

    assert exc_info.value.kind is ErrorKind.NOT_FOUND
    assert exc_info.value.__cause__ is problem


def test_handle_upcloud_errors_passes_provider_errors() -> None:
    """Test already classified errors pass through unchanged."""
    original = ProviderError(ErrorKind.INVALID_PARAMETER, "invalid zone: xx-yyy1")

    with pytest.raises(ProviderError) as exc_info:
        with handle_upcloud_errors("server creation"):
            raise original

    assert exc_info.value is original


def test_handle_upcloud_errors_no_error() -> None:
    """Test the context manager is transparent without errors."""
    callback = MagicMock(return_value=3)

    with handle_upcloud_errors("noop"):
        result = callback()

    assert result == 3


def test_problem_from_legacy_body() -> None:
    """Test parsing of the legacy error body."""
    response = MagicMock()
    response.status_code = 404
    response.reason = "Not Found"
    response.json.return_value = {
        "error": {
            "error_code": "SERVER_NOT_FOUND",
            "error_message": "The server 00aa does not exist.",
        }
    }

    problem = UpCloudProblem.from_response(response)

    assert problem.status == 404
    assert problem.error_code == "SERVER_NOT_FOUND"
    assert problem.title == "The server 00aa does not exist."


def test_problem_from_problem_json_body() -> None:
    """Test parsing of the problem+json body."""
    response = MagicMock()
    response.status_code = 422
    response.reason = "Unprocessable Entity"
    response.json.return_value = {
        "type": "https://developers.upcloud.com/1.3/errors#ERROR_INVALID_REQUEST",
        "title": "Validation error.",
        "status": 422,
    }

    problem = UpCloudProblem.from_response(response)

    assert problem.status == 422
    assert problem.title == "Validation error."
    assert problem.problem_type.endswith("ERROR_INVALID_REQUEST")


def test_problem_from_non_json_body() -> None:
    """Test bodies that are not JSON fall back to the HTTP reason."""
    response = MagicMock()
    response.status_code = 503
    response.reason = "Service Unavailable"
    response.json.side_effect = ValueError("no json")

    problem = UpCloudProblem.from_response(response)

    assert problem.status == 503
    assert problem.title == "Service Unavailable"
