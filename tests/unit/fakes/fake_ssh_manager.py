"""Fake SSHManager for testing with dependency injection."""

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)


class FakeSSHManager:
    """Fake SSHManager that records commands instead of running them.

    Instances register themselves in ``FakeSSHManager.instances`` so tests can
    inspect the manager the code under test created.

    Parameters
    ----------
    host : str
        Remote host
    pkey : Any
        Private key (not used)
    username : str
        SSH username (default: root)
    port : int
        SSH port (default: 22)
    """

    instances: list["FakeSSHManager"] = []

    def __init__(self, host: str, pkey: Any, username: str = "root", port: int = 22) -> None:
        self.host = host
        self.pkey = pkey
        self.username = username
        self.port = port
        self.connected = False
        self.closed = False
        self.commands: list[str] = []
        FakeSSHManager.instances.append(self)

    def connect(self, max_retries: int = 3) -> None:
        logger.info("Fake SSH connection to %s@%s:%s", self.username, self.host, self.port)
        self.connected = True

    def run(self, command: str, stdin: Any = None, stdout: Any = None, stderr: Any = None) -> int:
        """Record a command.

        Returns
        -------
        int
            Exit code parsed from ``exit N`` in the command, otherwise 0
        """
        if not self.connected:
            raise RuntimeError("SSH connection not established")

        self.commands.append(command)

        exit_match = re.search(r"\bexit\s+(\d+)", command)
        if exit_match:
            return int(exit_match.group(1))
        return 0

    def close(self) -> None:
        self.connected = False
        self.closed = True
