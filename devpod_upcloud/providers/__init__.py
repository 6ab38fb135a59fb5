"""Provider registry and lifecycle client selection.

Each registered provider contributes a live lifecycle client class, a
simulated one used with the test credentials, and a default zone.
"""

from __future__ import annotations

import threading
from typing import Any

from devpod_upcloud.constants import DEFAULT_TIMEOUT_SECONDS, TEST_CREDENTIAL
from devpod_upcloud.core.interfaces import LifecycleClient
from devpod_upcloud.providers.exceptions import ConfigError, ErrorKind, ProviderError
from devpod_upcloud.providers.upcloud import (
    SimulatedUpCloudManager,
    SimulationStore,
    UpCloudManager,
)
from devpod_upcloud.providers.upcloud.constants import DEFAULT_ZONE

DEFAULT_PROVIDER = "upcloud"

_PROVIDERS: dict[str, dict[str, Any]] = {}


def register_provider(
    name: str,
    live_class: type,
    simulated_class: type,
    default_zone: str | None = None,
) -> None:
    """Register a lifecycle client implementation.

    Parameters
    ----------
    name : str
        Provider name (e.g., 'upcloud')
    live_class : type
        Lifecycle client class talking to the real API
    simulated_class : type
        Lifecycle client class used with the test credentials
    default_zone : str | None
        Default zone for this provider
    """
    _PROVIDERS[name] = {
        "live": live_class,
        "simulated": simulated_class,
        "default_zone": default_zone,
    }


def get_provider(name: str) -> dict[str, Any]:
    """Get a registered provider by name.

    Raises
    ------
    ValueError
        If provider is not registered
    """
    if name not in _PROVIDERS:
        raise ValueError(f"Unknown provider: {name}")
    return _PROVIDERS[name]


def list_providers() -> list[str]:
    return list(_PROVIDERS.keys())


def get_default_zone(provider_name: str) -> str:
    """Get the default zone for a provider.

    Raises
    ------
    ValueError
        If provider is not registered or has no default zone
    """
    provider_info = get_provider(provider_name)
    default_zone = provider_info.get("default_zone")

    if default_zone is None:
        raise ValueError(f"No default zone defined for provider: {provider_name}")

    return default_zone


def is_test_credentials(username: str, password: str) -> bool:
    return username == TEST_CREDENTIAL and password == TEST_CREDENTIAL


def create_lifecycle_client(
    username: str,
    password: str,
    store: SimulationStore | None = None,
    cancel_event: threading.Event | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    provider: str = DEFAULT_PROVIDER,
) -> LifecycleClient:
    """Build the lifecycle client for a set of credentials.

    The test credentials select the simulated client, which never touches the
    network. Any other credentials select the live client.

    Parameters
    ----------
    username : str
        API username
    password : str
        API password
    store : SimulationStore | None
        Status store for the simulated client
    cancel_event : threading.Event | None
        Event that interrupts state waits of the live client
    timeout : float
        Maximum seconds for each state transition of the live client
    provider : str
        Registered provider name

    Returns
    -------
    LifecycleClient
        Live or simulated client
    """
    provider_info = get_provider(provider)

    if is_test_credentials(username, password):
        return provider_info["simulated"](store=store)

    return provider_info["live"](
        username,
        password,
        timeout=timeout,
        cancel_event=cancel_event,
    )


__all__ = [
    "register_provider",
    "get_provider",
    "list_providers",
    "get_default_zone",
    "create_lifecycle_client",
    "is_test_credentials",
    "ConfigError",
    "ErrorKind",
    "ProviderError",
]

register_provider(DEFAULT_PROVIDER, UpCloudManager, SimulatedUpCloudManager, DEFAULT_ZONE)
