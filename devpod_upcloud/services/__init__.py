"""Provider-agnostic services (SSH command execution, key material)."""

from __future__ import annotations

from devpod_upcloud.services.keys import MachineKeys
from devpod_upcloud.services.ssh import SSHManager

__all__ = ["SSHManager", "MachineKeys"]
