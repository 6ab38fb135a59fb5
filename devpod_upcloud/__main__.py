#!/usr/bin/env python3
"""UpCloud provider for DevPod workspaces."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from devpod_upcloud.cli.main import main
from devpod_upcloud.core.config import OptionsLoader
from devpod_upcloud.core.interfaces import LifecycleClient
from devpod_upcloud.core.signals import get_cancel_event
from devpod_upcloud.lifecycle import LifecycleManager
from devpod_upcloud.providers import create_lifecycle_client
from devpod_upcloud.providers.upcloud.plans import load_server_plans
from devpod_upcloud.providers.upcloud.simulated import SimulationStore
from devpod_upcloud.services.keys import MachineKeys
from devpod_upcloud.services.ssh import SSHManager


class Provider:
    """DevPod provider commands for UpCloud."""

    def __init__(
        self,
        client_factory: Callable[[str, str], LifecycleClient] | None = None,
        ssh_manager_factory: Callable[..., Any] | None = None,
        simulation_store: SimulationStore | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the provider with optional dependency injection."""
        self._options_loader = OptionsLoader(environ)
        self._environ = environ
        self._simulation_store = (
            simulation_store if simulation_store is not None else SimulationStore()
        )
        self._client_factory_override = client_factory
        self._ssh_manager_factory = ssh_manager_factory or SSHManager
        self._lifecycle_manager: LifecycleManager | None = None

    def _create_client(self, username: str, password: str) -> LifecycleClient:
        return create_lifecycle_client(
            username,
            password,
            store=self._simulation_store,
            cancel_event=get_cancel_event(),
        )

    def _get_lifecycle_manager(self) -> LifecycleManager:
        if self._lifecycle_manager is None:
            self._lifecycle_manager = LifecycleManager(
                options_loader=self._options_loader,
                client_factory=self._client_factory_override or self._create_client,
                ssh_manager_factory=self._ssh_manager_factory,
                plans_loader=load_server_plans,
                keys_factory=MachineKeys,
                environ=self._environ,
            )
        return self._lifecycle_manager

    def init(self) -> None:
        """Validate the UpCloud credentials."""
        return self._get_lifecycle_manager().init()

    def create(self) -> None:
        """Create the workspace server."""
        return self._get_lifecycle_manager().create()

    def delete(self) -> None:
        """Delete the workspace server and its storage."""
        return self._get_lifecycle_manager().delete()

    def start(self) -> None:
        """Start the workspace server."""
        return self._get_lifecycle_manager().start()

    def stop(self) -> None:
        """Stop the workspace server."""
        return self._get_lifecycle_manager().stop()

    def status(self) -> None:
        """Print Running, Stopped, Busy or NotFound."""
        return self._get_lifecycle_manager().status()

    def command(self) -> None:
        """Run $COMMAND on the workspace server over SSH."""
        return self._get_lifecycle_manager().command()

    def plans(
        self,
        detailed: bool = False,
        recommended: bool = False,
        category: str | None = None,
        format: str = "table",
    ) -> None:
        """List available server plans.

        Parameters
        ----------
        detailed : bool
            Show descriptions, use cases and restrictions
        recommended : bool
            Only show plans recommended for DevPod
        category : str | None
            Only show one category (developer, cloud_native, general_purpose,
            high_cpu, high_memory)
        format : str
            Output format: table, json or yaml
        """
        return self._get_lifecycle_manager().plans(
            detailed=detailed,
            recommended=recommended,
            category=category,
            format=format,
        )


if __name__ == "__main__":
    main()
