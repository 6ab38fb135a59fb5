"""Global constants for the UpCloud DevPod provider.

This module contains application-wide constants that are shared by the
lifecycle client, the command layer and the CLI.
"""

from enum import Enum

DEFAULT_TIMEOUT_SECONDS = 300
"""Upper bound in seconds for a single wait-for-state convergence.

Server creation on UpCloud (template clone plus first boot) usually completes
well within five minutes; start and stop transitions are faster.
"""

WAIT_POLL_INTERVAL_SECONDS = 5
"""Delay between server state polls while waiting for a transition."""

API_REQUEST_TIMEOUT_SECONDS = 30
"""Timeout in seconds for an individual HTTP request to the UpCloud API."""

SOFT_STOP_TIMEOUT_SECONDS = 60
"""Seconds UpCloud waits for a soft (ACPI) shutdown before forcing power off."""

DEFAULT_SSH_USER = "root"
"""Login user injected with the workspace SSH key on server creation."""

SSH_PORT = 22
"""Port used for the remote command channel."""

MAX_HOSTNAME_LENGTH = 63
"""Maximum length of a DNS label, applied to derived server hostnames."""

WORKSPACE_ID_PREFIX = "devpod-"
"""Prefix DevPod puts in front of machine identifiers."""

MIN_STORAGE_GB = 10
"""Smallest root storage size accepted for a workspace server."""

MAX_STORAGE_GB = 2048
"""Largest root storage size accepted for a workspace server."""

TEST_CREDENTIAL = "test"
"""Username and password pair that selects the simulated lifecycle client."""

SIMULATED_SERVER_IP = "192.0.2.1"
"""TEST-NET-1 address reported by the simulated client."""

MAX_COMMAND_LENGTH = 100000
"""Maximum length in characters for commands sent to the remote server.

DevPod injects its agent through the command channel, so the bound is larger
than what an interactive user would type.
"""

EXIT_SUCCESS = 0
"""Exit code indicating successful program completion."""

EXIT_ERROR = 1
"""Exit code indicating a provider, SSH or unexpected runtime failure."""

EXIT_CONFIG_ERROR = 2
"""Exit code indicating a configuration error.

Used when the process terminates due to missing environment options or
parameters the resolver rejects before any provider call.
"""


class WorkspaceStatus(str, Enum):
    """Normalized workspace status strings printed for DevPod."""

    RUNNING = "Running"
    STOPPED = "Stopped"
    BUSY = "Busy"
    NOT_FOUND = "NotFound"


class ServerState(str, Enum):
    """Server states reported by the UpCloud API."""

    STARTED = "started"
    STOPPED = "stopped"
    MAINTENANCE = "maintenance"
    ERROR = "error"
