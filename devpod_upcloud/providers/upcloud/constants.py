"""UpCloud-specific constants for server provisioning.

This module contains the static tables used when the bundled plan catalog is
unavailable, together with the operating system template identifiers.
"""

TEMPLATE_UBUNTU_2204 = "01000000-0000-4000-8000-000020070100"
TEMPLATE_UBUNTU_2004 = "01000000-0000-4000-8000-000020060100"
TEMPLATE_DEBIAN_12 = "01000000-0000-4000-8000-000020050100"
TEMPLATE_DEBIAN_11 = "01000000-0000-4000-8000-000020040100"
TEMPLATE_ROCKY_9 = "01000000-0000-4000-8000-000030090100"
TEMPLATE_ALMA_9 = "01000000-0000-4000-8000-000040090100"

TEMPLATE_UUID_PREFIX = "01000000-"
"""Prefix shared by the UUIDs of public UpCloud operating system templates.

Image values starting with this prefix are passed through as template
references without a lookup.
"""

IMAGE_TEMPLATES = {
    "Ubuntu Server 22.04 LTS (Jammy Jellyfish)": TEMPLATE_UBUNTU_2204,
    "Ubuntu Server 20.04 LTS (Focal Fossa)": TEMPLATE_UBUNTU_2004,
    "Debian 12 (Bookworm)": TEMPLATE_DEBIAN_12,
    "Debian 11 (Bullseye)": TEMPLATE_DEBIAN_11,
    "Rocky Linux 9": TEMPLATE_ROCKY_9,
    "AlmaLinux 9": TEMPLATE_ALMA_9,
}
"""Operating system display names offered to users, keyed to template UUIDs."""

DEFAULT_IMAGE = "Ubuntu Server 22.04 LTS (Jammy Jellyfish)"

LEGACY_PLANS = frozenset(
    (
        "DEV-1xCPU-1GB-10GB",
        "DEV-1xCPU-1GB",
        "DEV-1xCPU-2GB",
        "DEV-1xCPU-4GB",
        "DEV-2xCPU-4GB",
        "DEV-2xCPU-8GB",
        "DEV-2xCPU-16GB",
        "CN-1xCPU-0.5GB",
        "CN-1xCPU-1GB",
        "CN-2xCPU-2GB",
        "CN-2xCPU-4GB",
        "1xCPU-1GB",
        "1xCPU-2GB",
        "2xCPU-4GB",
        "4xCPU-8GB",
        "6xCPU-16GB",
        "8xCPU-32GB",
        "12xCPU-48GB",
        "16xCPU-64GB",
        "20xCPU-96GB",
    )
)
"""Plan ids accepted without the catalog.

Used only after the catalog lookup failed to load or did not contain the plan,
so that existing workspace configurations keep working.
"""

FALLBACK_ZONES = (
    "de-fra1",
    "fi-hel1",
    "fi-hel2",
    "nl-ams1",
    "uk-lon1",
    "us-nyc1",
    "us-chi1",
    "us-sjo1",
    "sg-sin1",
    "au-syd1",
    "es-mad1",
    "pl-waw1",
    "se-sto1",
)
"""Zones accepted when the catalog region list cannot be loaded."""

DEFAULT_ZONE = "de-fra1"

DEVELOPER_PLAN_PREFIX = "DEV-"

STORAGE_TIER_STANDARD = "standard"
"""Storage tier bundled with developer plans."""

STORAGE_TIER_MAXIOPS = "maxiops"
"""High performance storage tier used for every other plan."""

INTERFACE_PUBLIC = "public"
INTERFACE_UTILITY = "utility"
IP_FAMILY_IPV4 = "IPv4"
