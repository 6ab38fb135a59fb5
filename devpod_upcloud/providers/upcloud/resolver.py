"""Translate workspace configuration into UpCloud request parameters.

Plan and zone validation consult the bundled catalog first and fall back to
static tables when the catalog cannot be loaded. Every rejection is raised as a
``ProviderError`` of kind ``INVALID_PARAMETER``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from typing import Any

from devpod_upcloud.constants import (
    MAX_HOSTNAME_LENGTH,
    MAX_STORAGE_GB,
    MIN_STORAGE_GB,
    WORKSPACE_ID_PREFIX,
    ServerState,
    WorkspaceStatus,
)
from devpod_upcloud.providers.exceptions import ConfigError, ErrorKind, ProviderError
from devpod_upcloud.providers.upcloud.constants import (
    DEVELOPER_PLAN_PREFIX,
    FALLBACK_ZONES,
    IMAGE_TEMPLATES,
    INTERFACE_PUBLIC,
    IP_FAMILY_IPV4,
    LEGACY_PLANS,
    STORAGE_TIER_MAXIOPS,
    STORAGE_TIER_STANDARD,
    TEMPLATE_UUID_PREFIX,
)
from devpod_upcloud.providers.upcloud.plans import load_server_plans

logger = logging.getLogger(__name__)

PlanLookup = Callable[[str], str | None]
ZoneSource = Callable[[], Iterable[str]]

STORAGE_SIZE_PATTERN = re.compile(r"[+-]?[0-9]+")


class AddressNotFoundError(LookupError):
    """Server details carry no public IPv4 address."""


def _catalog_plan(plan_id: str) -> str | None:
    return plan_id if load_server_plans().validate_plan(plan_id) else None


def _legacy_plan(plan_id: str) -> str | None:
    return plan_id if plan_id in LEGACY_PLANS else None


def _catalog_zones() -> Iterable[str]:
    return load_server_plans().regions()


def _fallback_zones() -> Iterable[str]:
    return FALLBACK_ZONES


PLAN_LOOKUPS: tuple[PlanLookup, ...] = (_catalog_plan, _legacy_plan)
"""Plan lookups in priority order. The first non-None result wins."""

ZONE_SOURCES: tuple[ZoneSource, ...] = (_catalog_zones, _fallback_zones)
"""Zone sources in priority order. The first source that loads is authoritative."""


def _invalid(message: str) -> ProviderError:
    return ProviderError(ErrorKind.INVALID_PARAMETER, message)


def resolve_plan(
    plan_id: str, lookups: tuple[PlanLookup, ...] = PLAN_LOOKUPS
) -> str:
    """Validate a plan id.

    Parameters
    ----------
    plan_id : str
        Plan id requested by the user
    lookups : tuple[PlanLookup, ...]
        Lookups tried in order. A lookup raising ``ConfigError`` is skipped

    Returns
    -------
    str
        Plan id accepted by the first lookup that knows it

    Raises
    ------
    ProviderError
        INVALID_PARAMETER if no lookup accepts the plan
    """
    for lookup in lookups:
        try:
            resolved = lookup(plan_id)
        except ConfigError as e:
            logger.debug("Plan lookup %s unavailable: %s", lookup.__name__, e)
            continue
        if resolved:
            return resolved

    raise _invalid(
        f"invalid plan: {plan_id} (use the 'plans' command to list available plans)"
    )


def resolve_image(image: str) -> str:
    """Map an operating system name to a template UUID.

    Values that already look like a public template UUID are returned as-is.

    Raises
    ------
    ProviderError
        INVALID_PARAMETER for unknown images
    """
    template = IMAGE_TEMPLATES.get(image)
    if template:
        return template
    if image.startswith(TEMPLATE_UUID_PREFIX):
        return image
    raise _invalid(f"unknown image: {image}")


def resolve_storage_size(storage: str) -> int:
    """Parse a root storage size in GB.

    Parameters
    ----------
    storage : str
        ASCII decimal integer text with an optional sign and no whitespace

    Returns
    -------
    int
        Size in GB within the accepted bounds

    Raises
    ------
    ProviderError
        INVALID_PARAMETER if the text is not an integer or is out of bounds
    """
    if not STORAGE_SIZE_PATTERN.fullmatch(str(storage)):
        raise _invalid(f"invalid storage size: {storage}")

    size = int(storage)
    if size < MIN_STORAGE_GB or size > MAX_STORAGE_GB:
        raise _invalid(
            f"storage size must be between {MIN_STORAGE_GB} and {MAX_STORAGE_GB} GB"
        )
    return size


def resolve_zone(zone: str, sources: tuple[ZoneSource, ...] = ZONE_SOURCES) -> str:
    """Validate a zone code against the first zone source that loads.

    Raises
    ------
    ProviderError
        INVALID_PARAMETER naming the valid zones
    """
    for source in sources:
        try:
            valid_zones = list(source())
        except ConfigError as e:
            logger.debug("Zone source %s unavailable: %s", source.__name__, e)
            continue

        if zone in valid_zones:
            return zone
        raise _invalid(f"invalid zone: {zone} (available: {', '.join(valid_zones)})")

    raise _invalid(f"invalid zone: {zone}")


def storage_tier(plan_id: str) -> str:
    """Return the storage tier for a plan's root disk."""
    if plan_id.startswith(DEVELOPER_PLAN_PREFIX):
        return STORAGE_TIER_STANDARD
    return STORAGE_TIER_MAXIOPS


def derive_hostname(workspace_id: str) -> str:
    """Derive the server hostname for a workspace.

    Lowercases, strips every leading DevPod prefix and truncates to a DNS
    label. Applying it to its own output returns the same value.

    Parameters
    ----------
    workspace_id : str
        Workspace identity, e.g. ``devpod-MyProject``

    Returns
    -------
    str
        Hostname such as ``myproject``
    """
    hostname = workspace_id.lower()
    while hostname.startswith(WORKSPACE_ID_PREFIX):
        hostname = hostname[len(WORKSPACE_ID_PREFIX) :]
    return hostname[:MAX_HOSTNAME_LENGTH]


def find_by_workspace_id(
    servers: list[dict[str, Any]], workspace_id: str
) -> dict[str, Any] | None:
    """Find the server belonging to a workspace.

    An exact match on hostname or title wins over a match on the derived
    hostname.

    Parameters
    ----------
    servers : list[dict[str, Any]]
        Server summaries from the API
    workspace_id : str
        Workspace identity

    Returns
    -------
    dict[str, Any] | None
        Matching server summary, or None
    """
    for server in servers:
        if server.get("hostname") == workspace_id or server.get("title") == workspace_id:
            return server

    hostname = derive_hostname(workspace_id)
    for server in servers:
        if server.get("hostname") == hostname:
            return server

    return None


def map_server_state(state: str | None) -> WorkspaceStatus:
    if state == ServerState.STARTED:
        return WorkspaceStatus.RUNNING
    if state == ServerState.STOPPED:
        return WorkspaceStatus.STOPPED
    return WorkspaceStatus.BUSY


def public_ipv4(details: dict[str, Any]) -> str:
    """Return the first IPv4 address of the first public interface.

    Raises
    ------
    AddressNotFoundError
        If no public interface carries an IPv4 address
    """
    interfaces = (
        details.get("networking", {}).get("interfaces", {}).get("interface", [])
    )
    for interface in interfaces:
        if interface.get("type") != INTERFACE_PUBLIC:
            continue
        addresses = interface.get("ip_addresses", {}).get("ip_address", [])
        for address in addresses:
            if address.get("family") == IP_FAMILY_IPV4 and address.get("address"):
                return address["address"]

    raise AddressNotFoundError("no public IPv4 address found")
