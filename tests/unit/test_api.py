"""Unit tests for the UpCloud HTTP client."""

import threading
from unittest.mock import MagicMock, patch

import pytest

from devpod_upcloud.providers.upcloud.api import (
    DEFAULT_BASE_URL,
    UpCloudAPI,
    UpCloudProblem,
    WaitCancelledError,
    WaitTimeoutError,
)


def _response(status: int = 200, body: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.reason = "OK" if response.ok else "Error"
    response.content = b"{}" if body is not None else b""
    response.json.return_value = body if body is not None else {}
    return response


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def api(session: MagicMock) -> UpCloudAPI:
    return UpCloudAPI("devpod", "secret", session=session)


def _last_request(session: MagicMock) -> tuple:
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs


def test_session_configured(api: UpCloudAPI, session: MagicMock) -> None:
    """Test the session carries basic auth and JSON headers."""
    assert session.auth == ("devpod", "secret")
    assert session.headers["Accept"] == "application/json"
    assert session.headers["Content-Type"] == "application/json"


def test_get_account(api: UpCloudAPI, session: MagicMock) -> None:
    """Test the account endpoint is unwrapped."""
    session.request.return_value = _response(
        body={"account": {"username": "devpod", "credits": 1000}}
    )

    assert api.get_account()["username"] == "devpod"

    method, url, kwargs = _last_request(session)
    assert method == "GET"
    assert url == f"{DEFAULT_BASE_URL}/account"
    assert kwargs["timeout"] == 30


def test_get_servers(api: UpCloudAPI, session: MagicMock) -> None:
    """Test server listing is unwrapped to a list."""
    session.request.return_value = _response(
        body={"servers": {"server": [{"uuid": "a", "hostname": "h"}]}}
    )

    assert api.get_servers() == [{"uuid": "a", "hostname": "h"}]


def test_get_servers_empty(api: UpCloudAPI, session: MagicMock) -> None:
    """Test an account without servers yields an empty list."""
    session.request.return_value = _response(body={"servers": {"server": []}})

    assert api.get_servers() == []


def test_create_server_wraps_body(api: UpCloudAPI, session: MagicMock) -> None:
    """Test the creation request is wrapped in a server object."""
    session.request.return_value = _response(
        status=202, body={"server": {"uuid": "new", "state": "maintenance"}}
    )

    details = api.create_server({"hostname": "myproject"})

    method, url, kwargs = _last_request(session)
    assert details["uuid"] == "new"
    assert method == "POST"
    assert url.endswith("/server")
    assert kwargs["json"] == {"server": {"hostname": "myproject"}}


@pytest.mark.parametrize("hard,stop_type", [(True, "hard"), (False, "soft")])
def test_stop_server(
    api: UpCloudAPI, session: MagicMock, hard: bool, stop_type: str
) -> None:
    """Test the stop type follows the hard flag."""
    session.request.return_value = _response(body={"server": {"uuid": "a"}})

    api.stop_server("a", hard=hard)

    method, url, kwargs = _last_request(session)
    assert url.endswith("/server/a/stop")
    assert kwargs["json"]["stop_server"]["stop_type"] == stop_type


def test_start_server(api: UpCloudAPI, session: MagicMock) -> None:
    """Test the start endpoint is called."""
    session.request.return_value = _response(body={"server": {"uuid": "a"}})

    api.start_server("a")

    method, url, _ = _last_request(session)
    assert (method, url) == ("POST", f"{DEFAULT_BASE_URL}/server/a/start")


def test_delete_server_with_storages(api: UpCloudAPI, session: MagicMock) -> None:
    """Test deletion removes storages and handles an empty 204 body."""
    session.request.return_value = _response(status=204)

    assert api.delete_server("a") is None

    method, url, kwargs = _last_request(session)
    assert method == "DELETE"
    assert url.endswith("/server/a")
    assert kwargs["params"] == {"storages": "1", "backups": "delete"}


def test_delete_server_keep_storages(api: UpCloudAPI, session: MagicMock) -> None:
    """Test storages can be kept."""
    session.request.return_value = _response(status=204)

    api.delete_server("a", storages=False)

    _, _, kwargs = _last_request(session)
    assert kwargs["params"] is None


def test_error_response_raises_problem(api: UpCloudAPI, session: MagicMock) -> None:
    """Test non-2xx responses raise UpCloudProblem."""
    session.request.return_value = _response(
        status=404,
        body={
            "error": {
                "error_code": "SERVER_NOT_FOUND",
                "error_message": "The server a does not exist.",
            }
        },
    )

    with pytest.raises(UpCloudProblem) as exc_info:
        api.get_server_details("a")

    assert exc_info.value.status == 404
    assert exc_info.value.error_code == "SERVER_NOT_FOUND"


def test_base_url_trailing_slash(session: MagicMock) -> None:
    """Test a trailing slash on the base URL is ignored."""
    api = UpCloudAPI("u", "p", session=session, base_url="http://localhost:8080/1.3/")
    session.request.return_value = _response(body={"account": {}})

    api.get_account()

    _, url, _ = _last_request(session)
    assert url == "http://localhost:8080/1.3/account"


def test_wait_returns_when_state_reached(api: UpCloudAPI) -> None:
    """Test waiting polls until the desired state is reported."""
    states = iter(["maintenance", "maintenance", "started"])

    with patch.object(
        api, "get_server_details", side_effect=lambda uuid: {"state": next(states)}
    ) as mock_details:
        details = api.wait_for_server_state("a", "started", timeout=10, poll_interval=0)

    assert details == {"state": "started"}
    assert mock_details.call_count == 3


@patch("devpod_upcloud.providers.upcloud.api.time")
def test_wait_times_out(mock_time: MagicMock, api: UpCloudAPI) -> None:
    """Test waiting gives up after the timeout."""
    mock_time.monotonic.side_effect = [0, 5, 11]

    with patch.object(api, "get_server_details", return_value={"state": "maintenance"}):
        with pytest.raises(WaitTimeoutError, match="timeout waiting for server a"):
            api.wait_for_server_state("a", "started", timeout=10, poll_interval=5)

    mock_time.sleep.assert_called_once_with(5)


def test_wait_cancelled_before_poll(api: UpCloudAPI) -> None:
    """Test a set cancel event aborts without polling."""
    cancel_event = threading.Event()
    cancel_event.set()

    with patch.object(api, "get_server_details") as mock_details:
        with pytest.raises(WaitCancelledError):
            api.wait_for_server_state("a", "started", cancel_event=cancel_event)

    mock_details.assert_not_called()


def test_wait_cancelled_while_waiting(api: UpCloudAPI) -> None:
    """Test cancellation during the poll delay returns promptly."""
    cancel_event = threading.Event()

    def details(uuid: str) -> dict:
        cancel_event.set()
        return {"state": "maintenance"}

    with patch.object(api, "get_server_details", side_effect=details):
        with pytest.raises(WaitCancelledError):
            api.wait_for_server_state(
                "a", "started", timeout=300, cancel_event=cancel_event, poll_interval=60
            )
