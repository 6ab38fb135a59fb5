"""Protocol definitions for workspace lifecycle clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ServerConfig:
    """Input for creating a workspace server.

    Parameters
    ----------
    workspace_id : str
        Workspace identity assigned by DevPod
    zone : str
        UpCloud zone code, e.g. ``de-fra1``
    plan : str
        UpCloud plan id
    storage : str
        Root storage size in GB as decimal text
    image : str
        Operating system display name or template UUID
    template : str | None
        Explicit template UUID. Takes precedence over ``image``
    ssh_public_key : str | None
        OpenSSH public key installed for the root user
    user_data : str | None
        Boot-time provisioning script
    """

    workspace_id: str
    zone: str
    plan: str
    storage: str
    image: str
    template: str | None = None
    ssh_public_key: str | None = None
    user_data: str | None = None


@runtime_checkable
class LifecycleClient(Protocol):
    """Protocol for workspace server lifecycle operations.

    Every implementation drives each operation to a terminal state before
    returning and raises ``ProviderError`` for failures.
    """

    simulated: bool

    def test_connection(self) -> None:
        """Verify the credentials against the provider."""
        ...

    def create(self, config: ServerConfig) -> None:
        """Create a workspace server and wait until it is started."""
        ...

    def delete(self, workspace_id: str) -> None:
        """Delete a workspace server. Deleting an absent server succeeds."""
        ...

    def start(self, workspace_id: str) -> None:
        """Start a workspace server and wait until it is started."""
        ...

    def stop(self, workspace_id: str) -> None:
        """Stop a workspace server and wait until it is stopped."""
        ...

    def status(self, workspace_id: str) -> str:
        """Return one of ``Running``, ``Stopped``, ``Busy`` or ``NotFound``."""
        ...

    def get_address(self, workspace_id: str) -> str:
        """Return the public IPv4 address of a workspace server."""
        ...
