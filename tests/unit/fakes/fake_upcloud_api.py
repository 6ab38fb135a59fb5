"""Fake UpCloudAPI for testing with dependency injection."""

import itertools
import threading
from typing import Any

from devpod_upcloud.providers.upcloud.api import UpCloudProblem, WaitCancelledError


class FakeUpCloudAPI:
    """Fake UpCloudAPI that keeps servers in memory.

    Matches the ``UpCloudAPI`` interface so it can be injected into
    ``UpCloudManager``. State transitions complete immediately unless a wait
    failure is queued.

    Parameters
    ----------
    username : str
        Username reported by ``get_account``
    """

    def __init__(self, username: str = "devpod") -> None:
        self.username = username
        self.servers: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.failures: dict[str, BaseException] = {}
        self.wait_failures: list[BaseException] = []
        self.created_requests: list[dict[str, Any]] = []
        self.deleted_with_storages: list[str] = []
        self._uuids = (f"00{n:06d}-0000-4000-8000-000000000000" for n in itertools.count(1))

    def add_server(
        self,
        hostname: str,
        state: str = "started",
        title: str | None = None,
        ip: str = "203.0.113.10",
    ) -> str:
        """Add an existing server and return its UUID."""
        uuid = next(self._uuids)
        self.servers[uuid] = {
            "uuid": uuid,
            "hostname": hostname,
            "title": title if title is not None else hostname,
            "state": state,
            "networking": {
                "interfaces": {
                    "interface": [
                        {
                            "type": "utility",
                            "ip_addresses": {
                                "ip_address": [{"family": "IPv4", "address": "10.0.0.5"}]
                            },
                        },
                        {
                            "type": "public",
                            "ip_addresses": {
                                "ip_address": [{"family": "IPv4", "address": ip}]
                            },
                        },
                    ]
                }
            },
        }
        return uuid

    def fail(self, method: str, error: BaseException) -> None:
        """Make every later call to ``method`` raise ``error``."""
        self.failures[method] = error

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.failures:
            raise self.failures[method]

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def _server(self, uuid: str) -> dict[str, Any]:
        if uuid not in self.servers:
            raise UpCloudProblem(404, "Server not found", error_code="SERVER_NOT_FOUND")
        return self.servers[uuid]

    def get_account(self) -> dict[str, Any]:
        self._record("get_account")
        return {"username": self.username, "credits": 1000}

    def get_servers(self) -> list[dict[str, Any]]:
        self._record("get_servers")
        return [
            {key: server[key] for key in ("uuid", "hostname", "title", "state")}
            for server in self.servers.values()
        ]

    def get_server_details(self, uuid: str) -> dict[str, Any]:
        self._record("get_server_details", uuid)
        return dict(self._server(uuid))

    def create_server(self, server: dict[str, Any]) -> dict[str, Any]:
        self._record("create_server", server)
        self.created_requests.append(server)
        uuid = self.add_server(server["hostname"], state="maintenance", title=server["title"])
        return dict(self.servers[uuid])

    def start_server(self, uuid: str) -> dict[str, Any]:
        self._record("start_server", uuid)
        server = self._server(uuid)
        server["state"] = "maintenance"
        server["target_state"] = "started"
        return dict(server)

    def stop_server(self, uuid: str, hard: bool = False) -> dict[str, Any]:
        self._record("stop_server", uuid, hard)
        server = self._server(uuid)
        server["state"] = "maintenance"
        server["target_state"] = "stopped"
        return dict(server)

    def delete_server(self, uuid: str, storages: bool = True) -> None:
        self._record("delete_server", uuid, storages)
        self._server(uuid)
        del self.servers[uuid]
        if storages:
            self.deleted_with_storages.append(uuid)

    def wait_for_server_state(
        self,
        uuid: str,
        desired_state: str,
        timeout: float = 300,
        cancel_event: threading.Event | None = None,
        poll_interval: float = 5,
    ) -> dict[str, Any]:
        self._record("wait_for_server_state", uuid, desired_state)

        if cancel_event is not None and cancel_event.is_set():
            raise WaitCancelledError(f"Cancelled while waiting for server {uuid}")

        if self.wait_failures:
            raise self.wait_failures.pop(0)

        server = self._server(uuid)
        server["state"] = desired_state
        server.pop("target_state", None)
        return dict(server)
