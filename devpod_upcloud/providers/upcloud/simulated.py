"""Simulated lifecycle client selected by the test credentials.

Used by end-to-end DevPod provider tests to exercise the full command surface
without an UpCloud account. No network I/O is performed.
"""

from __future__ import annotations

import logging
import threading

from devpod_upcloud.constants import SIMULATED_SERVER_IP, WorkspaceStatus
from devpod_upcloud.core.interfaces import ServerConfig

logger = logging.getLogger(__name__)


class SimulationStore:
    """In-memory workspace status store shared by simulated clients.

    Parameters
    ----------
    default_status : WorkspaceStatus
        Status reported for workspaces the store has never seen
    """

    def __init__(self, default_status: WorkspaceStatus = WorkspaceStatus.RUNNING) -> None:
        self._lock = threading.Lock()
        self._statuses: dict[str, WorkspaceStatus] = {}
        self.default_status = default_status

    def set(self, workspace_id: str, status: WorkspaceStatus) -> None:
        with self._lock:
            self._statuses[workspace_id] = status

    def get(self, workspace_id: str) -> WorkspaceStatus:
        with self._lock:
            return self._statuses.get(workspace_id, self.default_status)

    def clear(self) -> None:
        with self._lock:
            self._statuses.clear()


class SimulatedUpCloudManager:
    """Lifecycle client that records transitions in a ``SimulationStore``.

    Parameters
    ----------
    store : SimulationStore | None
        Store to record statuses in. If None, a private store is created
    """

    simulated = True

    def __init__(self, store: SimulationStore | None = None) -> None:
        self.store = store if store is not None else SimulationStore()

    def test_connection(self) -> None:
        logger.info("Test mode: simulating successful authentication")

    def create(self, config: ServerConfig) -> None:
        logger.info("Test mode: simulating server creation for %s", config.workspace_id)
        self.store.set(config.workspace_id, WorkspaceStatus.RUNNING)

    def delete(self, workspace_id: str) -> None:
        logger.info("Test mode: simulating server deletion for %s", workspace_id)
        self.store.set(workspace_id, WorkspaceStatus.NOT_FOUND)

    def start(self, workspace_id: str) -> None:
        logger.info("Test mode: simulating server start for %s", workspace_id)
        self.store.set(workspace_id, WorkspaceStatus.RUNNING)

    def stop(self, workspace_id: str) -> None:
        logger.info("Test mode: simulating server stop for %s", workspace_id)
        self.store.set(workspace_id, WorkspaceStatus.STOPPED)

    def status(self, workspace_id: str) -> str:
        return self.store.get(workspace_id).value

    def get_address(self, workspace_id: str) -> str:
        logger.debug("Test mode: simulating address lookup for %s", workspace_id)
        return SIMULATED_SERVER_IP
