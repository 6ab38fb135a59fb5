"""UpCloud server lifecycle management for DevPod workspaces."""

from __future__ import annotations

import logging
import threading
from typing import Any

from devpod_upcloud.constants import (
    DEFAULT_SSH_USER,
    DEFAULT_TIMEOUT_SECONDS,
    WAIT_POLL_INTERVAL_SECONDS,
    ServerState,
    WorkspaceStatus,
)
from devpod_upcloud.core.interfaces import ServerConfig
from devpod_upcloud.providers.exceptions import ErrorKind, ProviderError
from devpod_upcloud.providers.upcloud.api import UpCloudAPI
from devpod_upcloud.providers.upcloud.constants import (
    INTERFACE_PUBLIC,
    INTERFACE_UTILITY,
    IP_FAMILY_IPV4,
)
from devpod_upcloud.providers.upcloud.errors import (
    classify,
    handle_upcloud_errors,
    is_not_found,
)
from devpod_upcloud.providers.upcloud.resolver import (
    derive_hostname,
    find_by_workspace_id,
    map_server_state,
    public_ipv4,
    resolve_image,
    resolve_plan,
    resolve_storage_size,
    resolve_zone,
    storage_tier,
)

logger = logging.getLogger(__name__)


class UpCloudManager:
    """Manage the UpCloud server backing a DevPod workspace.

    Parameters
    ----------
    username : str
        UpCloud API username
    password : str
        UpCloud API password
    api : UpCloudAPI | None
        Optional API client. If None, one is built from the credentials
    timeout : float
        Maximum seconds to wait for each state transition
    cancel_event : threading.Event | None
        Event that interrupts state waits when set
    poll_interval : float
        Seconds between state polls
    """

    simulated = False

    def __init__(
        self,
        username: str,
        password: str,
        api: UpCloudAPI | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        cancel_event: threading.Event | None = None,
        poll_interval: float = WAIT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.username = username
        self.api = api or UpCloudAPI(username, password)
        self.timeout = timeout
        self.cancel_event = cancel_event or threading.Event()
        self.poll_interval = poll_interval

    def _wait_for_state(self, uuid: str, desired_state: ServerState) -> dict[str, Any]:
        return self.api.wait_for_server_state(
            uuid,
            desired_state.value,
            timeout=self.timeout,
            cancel_event=self.cancel_event,
            poll_interval=self.poll_interval,
        )

    def _find_server(self, workspace_id: str) -> dict[str, Any]:
        """Locate the server for a workspace.

        Raises
        ------
        ProviderError
            NOT_FOUND if no server matches, or the classified listing failure
        """
        with handle_upcloud_errors("listing servers"):
            servers = self.api.get_servers()

        server = find_by_workspace_id(servers, workspace_id)
        if server is None:
            raise ProviderError(
                ErrorKind.NOT_FOUND, f"server not found for workspace {workspace_id}"
            )
        return server

    def test_connection(self) -> None:
        """Verify the credentials by fetching the account.

        Raises
        ------
        ProviderError
            AUTHENTICATION if the account response carries no username, or the
            classified request failure
        """
        with handle_upcloud_errors("authentication test"):
            account = self.api.get_account()

        if not account.get("username"):
            raise ProviderError(ErrorKind.AUTHENTICATION, "invalid account response")

        logger.debug("Authenticated as %s", account["username"])

    def _build_create_request(self, config: ServerConfig) -> dict[str, Any]:
        zone = resolve_zone(config.zone)
        plan = resolve_plan(config.plan)
        template = config.template or resolve_image(config.image)
        size = resolve_storage_size(config.storage)

        request: dict[str, Any] = {
            "zone": zone,
            "title": config.workspace_id,
            "hostname": derive_hostname(config.workspace_id),
            "plan": plan,
            "metadata": "yes",
            "password_delivery": "none",
            "storage_devices": {
                "storage_device": [
                    {
                        "action": "clone",
                        "storage": template,
                        "title": "root",
                        "size": size,
                        "tier": storage_tier(plan),
                    }
                ]
            },
            "networking": {
                "interfaces": {
                    "interface": [
                        {
                            "type": interface_type,
                            "ip_addresses": {
                                "ip_address": [{"family": IP_FAMILY_IPV4}]
                            },
                        }
                        for interface_type in (INTERFACE_PUBLIC, INTERFACE_UTILITY)
                    ]
                }
            },
        }

        if config.ssh_public_key:
            request["login_user"] = {
                "username": DEFAULT_SSH_USER,
                "create_password": "no",
                "ssh_keys": {"ssh_key": [config.ssh_public_key]},
            }

        if config.user_data:
            request["user_data"] = config.user_data

        return request

    def create(self, config: ServerConfig) -> None:
        """Create the workspace server and wait until it is started.

        If the server never reaches ``started`` it is deleted together with its
        storages before the wait failure is raised.

        Parameters
        ----------
        config : ServerConfig
            Workspace server configuration

        Raises
        ------
        ProviderError
            INVALID_PARAMETER for rejected configuration, or the classified
            creation or wait failure
        """
        request = self._build_create_request(config)

        logger.info(
            "Creating server %s (%s, %s) in %s...",
            request["hostname"],
            request["plan"],
            config.workspace_id,
            request["zone"],
        )

        with handle_upcloud_errors("server creation"):
            details = self.api.create_server(request)

        uuid = details["uuid"]

        try:
            self._wait_for_state(uuid, ServerState.STARTED)
        except Exception as e:
            logger.warning("Server %s failed to start, deleting it: %s", uuid, e)
            try:
                self.api.delete_server(uuid, storages=True)
            except Exception as cleanup_error:
                logger.warning(
                    "Failed to delete server %s after failed start: %s",
                    uuid,
                    cleanup_error,
                )
            raise classify(e, "waiting for server to start") from e

        logger.info("Server %s is running", request["hostname"])

    def delete(self, workspace_id: str) -> None:
        """Delete the workspace server and its storages.

        A missing server counts as already deleted. A started server is hard
        stopped first.

        Raises
        ------
        ProviderError
            For any failure other than the server being absent
        """
        try:
            server = self._find_server(workspace_id)
        except ProviderError as e:
            if e.kind is ErrorKind.NOT_FOUND:
                logger.info("Server for %s already deleted", workspace_id)
                return
            raise

        uuid = server["uuid"]

        if server.get("state") == ServerState.STARTED:
            logger.info("Stopping server %s before deletion...", uuid)
            try:
                with handle_upcloud_errors("stopping server before deletion"):
                    self.api.stop_server(uuid, hard=True)
            except ProviderError as e:
                if e.kind is not ErrorKind.NOT_FOUND:
                    raise

            try:
                self._wait_for_state(uuid, ServerState.STOPPED)
            except Exception as e:
                logger.warning("Server %s did not report stopped: %s", uuid, e)

        logger.info("Deleting server %s...", uuid)
        try:
            with handle_upcloud_errors("server deletion"):
                self.api.delete_server(uuid, storages=True)
        except ProviderError as e:
            if not is_not_found(e):
                raise

    def start(self, workspace_id: str) -> None:
        """Start the workspace server if it is not already started."""
        server = self._find_server(workspace_id)
        uuid = server["uuid"]

        if server.get("state") == ServerState.STARTED:
            logger.info("Server %s already running", uuid)
            return

        logger.info("Starting server %s...", uuid)
        with handle_upcloud_errors("server start"):
            self.api.start_server(uuid)

        with handle_upcloud_errors("waiting for server to start"):
            self._wait_for_state(uuid, ServerState.STARTED)

    def stop(self, workspace_id: str) -> None:
        """Soft stop the workspace server if it is not already stopped."""
        server = self._find_server(workspace_id)
        uuid = server["uuid"]

        if server.get("state") == ServerState.STOPPED:
            logger.info("Server %s already stopped", uuid)
            return

        logger.info("Stopping server %s...", uuid)
        with handle_upcloud_errors("server stop"):
            self.api.stop_server(uuid, hard=False)

        with handle_upcloud_errors("waiting for server to stop"):
            self._wait_for_state(uuid, ServerState.STOPPED)

    def status(self, workspace_id: str) -> str:
        """Return the DevPod status of the workspace server.

        Returns
        -------
        str
            ``Running``, ``Stopped``, ``Busy``, or ``NotFound`` when no server
            exists

        Raises
        ------
        ProviderError
            If the lookup fails for any reason other than the server being absent
        """
        try:
            server = self._find_server(workspace_id)
        except ProviderError as e:
            if e.kind is ErrorKind.NOT_FOUND:
                return WorkspaceStatus.NOT_FOUND.value
            raise

        return map_server_state(server.get("state")).value

    def get_address(self, workspace_id: str) -> str:
        """Return the public IPv4 address of the workspace server."""
        server = self._find_server(workspace_id)

        with handle_upcloud_errors("getting server details"):
            details = self.api.get_server_details(server["uuid"])

        with handle_upcloud_errors("extracting public IP"):
            return public_ipv4(details)
