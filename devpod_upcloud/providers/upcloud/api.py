"""Thin HTTP client for the UpCloud API 1.3."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import requests

from devpod_upcloud.constants import (
    API_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    SOFT_STOP_TIMEOUT_SECONDS,
    WAIT_POLL_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.upcloud.com/1.3"

USER_AGENT = "devpod-provider-upcloud"


class UpCloudProblem(Exception):
    """Non-2xx response returned by the UpCloud API.

    Parameters
    ----------
    status : int
        HTTP status code of the response
    title : str
        Problem title or legacy ``error_message``
    error_code : str | None
        Legacy ``error_code`` (e.g. ``SERVER_NOT_FOUND``) when present
    problem_type : str | None
        Problem ``type`` URI when the body follows RFC 7807
    """

    def __init__(
        self,
        status: int,
        title: str,
        error_code: str | None = None,
        problem_type: str | None = None,
    ) -> None:
        self.status = status
        self.title = title
        self.error_code = error_code
        self.problem_type = problem_type
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.error_code:
            return f"UpCloud API error {self.status} ({self.error_code}): {self.title}"
        return f"UpCloud API error {self.status}: {self.title}"

    @classmethod
    def from_response(cls, response: requests.Response) -> UpCloudProblem:
        """Build a problem from an error response.

        Both the problem+json body (``title``/``type``/``status``) and the
        legacy ``{"error": {"error_code": ..., "error_message": ...}}`` body are
        understood. Bodies that are not JSON fall back to the HTTP reason.

        Parameters
        ----------
        response : requests.Response
            Response with a non-2xx status code

        Returns
        -------
        UpCloudProblem
            Parsed problem
        """
        try:
            body = response.json()
        except ValueError:
            body = {}

        if not isinstance(body, dict):
            body = {}

        legacy = body.get("error")
        if isinstance(legacy, dict):
            return cls(
                status=response.status_code,
                title=legacy.get("error_message") or response.reason or "",
                error_code=legacy.get("error_code"),
            )

        return cls(
            status=body.get("status") or response.status_code,
            title=body.get("title") or response.reason or "",
            problem_type=body.get("type"),
        )


class WaitTimeoutError(Exception):
    """Server did not reach the desired state before the wait timeout."""


class WaitCancelledError(Exception):
    """Waiting for a server state was interrupted by the cancellation event."""


class UpCloudAPI:
    """Synchronous UpCloud API client.

    Parameters
    ----------
    username : str
        UpCloud API username
    password : str
        UpCloud API password
    session : requests.Session | None
        Optional session to use. If None, a new session is created
    base_url : str
        API root including the version segment
    request_timeout : float
        Per-request timeout in seconds
    """

    def __init__(
        self,
        username: str,
        password: str,
        session: requests.Session | None = None,
        base_url: str = DEFAULT_BASE_URL,
        request_timeout: float = API_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.session = session or requests.Session()
        self.session.auth = (username, password)
        self.session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
            }
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug("%s %s", method, url)

        response = self.session.request(
            method, url, timeout=self.request_timeout, **kwargs
        )

        if not response.ok:
            raise UpCloudProblem.from_response(response)

        if response.status_code == 204 or not response.content:
            return {}

        return response.json()

    def get_account(self) -> dict[str, Any]:
        """Return the account the credentials belong to."""
        return self._request("GET", "account").get("account", {})

    def get_servers(self) -> list[dict[str, Any]]:
        """List every server on the account.

        Returns
        -------
        list[dict[str, Any]]
            Server summaries with ``uuid``, ``hostname``, ``title`` and ``state``
        """
        response = self._request("GET", "server")
        return response.get("servers", {}).get("server", [])

    def get_server_details(self, uuid: str) -> dict[str, Any]:
        """Return full server details including networking and storage."""
        return self._request("GET", f"server/{uuid}").get("server", {})

    def create_server(self, server: dict[str, Any]) -> dict[str, Any]:
        """Submit a server creation request.

        Parameters
        ----------
        server : dict[str, Any]
            Body of the ``server`` object of the creation request

        Returns
        -------
        dict[str, Any]
            Details of the server being created
        """
        return self._request("POST", "server", json={"server": server}).get(
            "server", {}
        )

    def start_server(self, uuid: str) -> dict[str, Any]:
        """Request a stopped server to start."""
        return self._request("POST", f"server/{uuid}/start").get("server", {})

    def stop_server(self, uuid: str, hard: bool = False) -> dict[str, Any]:
        """Request a server to stop.

        Parameters
        ----------
        uuid : str
            Server UUID
        hard : bool
            Power off immediately instead of an ACPI shutdown
        """
        body = {
            "stop_server": {
                "stop_type": "hard" if hard else "soft",
                "timeout": str(SOFT_STOP_TIMEOUT_SECONDS),
            }
        }
        return self._request("POST", f"server/{uuid}/stop", json=body).get(
            "server", {}
        )

    def delete_server(self, uuid: str, storages: bool = True) -> None:
        """Delete a stopped server.

        Parameters
        ----------
        uuid : str
            Server UUID
        storages : bool
            Also delete attached storages and their backups
        """
        params = {"storages": "1", "backups": "delete"} if storages else None
        self._request("DELETE", f"server/{uuid}", params=params)

    def wait_for_server_state(
        self,
        uuid: str,
        desired_state: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        cancel_event: threading.Event | None = None,
        poll_interval: float = WAIT_POLL_INTERVAL_SECONDS,
    ) -> dict[str, Any]:
        """Poll a server until it reports the desired state.

        Parameters
        ----------
        uuid : str
            Server UUID
        desired_state : str
            Target state, e.g. ``started`` or ``stopped``
        timeout : float
            Maximum seconds to wait
        cancel_event : threading.Event | None
            Event that aborts the wait as soon as it is set
        poll_interval : float
            Seconds between polls

        Returns
        -------
        dict[str, Any]
            Server details in the desired state

        Raises
        ------
        WaitTimeoutError
            If the state is not reached within ``timeout``
        WaitCancelledError
            If ``cancel_event`` is set while waiting
        """
        deadline = time.monotonic() + timeout

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise WaitCancelledError(
                    f"Cancelled while waiting for server {uuid} to reach state "
                    f"{desired_state}"
                )

            details = self.get_server_details(uuid)
            state = details.get("state")

            if state == desired_state:
                return details

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError(
                    f"timeout waiting for server {uuid} to reach state "
                    f"{desired_state} (last state: {state})"
                )

            logger.debug(
                "Server %s is %s, waiting for %s", uuid, state, desired_state
            )
            delay = min(poll_interval, remaining)

            if cancel_event is not None:
                cancel_event.wait(delay)
            else:
                time.sleep(delay)
