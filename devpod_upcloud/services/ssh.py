"""SSH command execution on workspace servers."""

import logging
import os
import socket
import sys
import threading
import time
from typing import BinaryIO

import paramiko
from paramiko.channel import Channel

from devpod_upcloud.constants import DEFAULT_SSH_USER, MAX_COMMAND_LENGTH, SSH_PORT

logger = logging.getLogger(__name__)

CHUNK_SIZE = 32768
IDLE_POLL_SECONDS = 0.01


class SSHManager:
    """Runs commands on a workspace server over SSH.

    Parameters
    ----------
    host : str
        Server IPv4 address or hostname
    pkey : paramiko.PKey
        Private key used for authentication
    username : str
        SSH username (default: root)
    port : int
        SSH port (default: 22)

    Attributes
    ----------
    client : paramiko.SSHClient | None
        SSH client instance (None when not connected)
    """

    def __init__(
        self,
        host: str,
        pkey: paramiko.PKey,
        username: str = DEFAULT_SSH_USER,
        port: int = SSH_PORT,
    ) -> None:
        self.host = host
        self.pkey = pkey
        self.username = username
        self.port = port
        self.client: paramiko.SSHClient | None = None
        self._active_channel: Channel | None = None

    def connect(self, max_retries: int = 3) -> None:
        """Establish the SSH connection, retrying transient failures.

        Parameters
        ----------
        max_retries : int
            Maximum number of connection attempts (default: 3)

        Raises
        ------
        ConnectionError
            If connection fails after all retry attempts
        """
        delays = [2, 5, 10]
        timeout_seconds = int(os.environ.get("DEVPOD_UPCLOUD_SSH_TIMEOUT", "30"))

        for attempt in range(max_retries):
            try:
                logger.debug(
                    "Attempting SSH connection to %s:%s (attempt %s/%s)...",
                    self.host,
                    self.port,
                    attempt + 1,
                    max_retries,
                )

                self.client = paramiko.SSHClient()
                self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
                self.client.connect(
                    hostname=self.host,
                    port=self.port,
                    username=self.username,
                    pkey=self.pkey,
                    timeout=timeout_seconds,
                    auth_timeout=30,
                    banner_timeout=timeout_seconds,
                    allow_agent=False,
                    look_for_keys=False,
                )
                return

            except (
                paramiko.ssh_exception.NoValidConnectionsError,
                paramiko.ssh_exception.SSHException,
                TimeoutError,
                ConnectionRefusedError,
                ConnectionResetError,
                socket.timeout,
            ) as e:
                if attempt < max_retries - 1:
                    time.sleep(delays[min(attempt, len(delays) - 1)])
                    continue
                raise ConnectionError(
                    f"Failed to establish SSH connection to {self.host} "
                    f"after {max_retries} attempts"
                ) from e

    def _pump_stdin(self, channel: Channel, stdin: BinaryIO) -> None:
        read = getattr(stdin, "read1", stdin.read)
        try:
            while True:
                data = read(CHUNK_SIZE)
                if not data:
                    break
                channel.sendall(data)
        except OSError as e:
            logger.debug("Stopped forwarding stdin: %s", e)
        finally:
            try:
                channel.shutdown_write()
            except OSError as e:
                logger.debug("Failed to close remote stdin: %s", e)

    def _drain(self, channel: Channel, stdout: BinaryIO, stderr: BinaryIO) -> bool:
        received = False

        if channel.recv_ready():
            data = channel.recv(CHUNK_SIZE)
            if data:
                stdout.write(data)
                stdout.flush()
                received = True

        if channel.recv_stderr_ready():
            data = channel.recv_stderr(CHUNK_SIZE)
            if data:
                stderr.write(data)
                stderr.flush()
                received = True

        return received

    def run(
        self,
        command: str,
        stdin: BinaryIO | None = None,
        stdout: BinaryIO | None = None,
        stderr: BinaryIO | None = None,
    ) -> int:
        """Run a command wired to local byte streams.

        Local stdin is forwarded to the remote command until EOF while remote
        stdout and stderr are copied to the local streams as they arrive. No
        pseudo terminal is allocated, so binary protocols pass through intact.

        Parameters
        ----------
        command : str
            Command line executed by the remote login shell
        stdin : BinaryIO | None
            Local input stream (default: process stdin)
        stdout : BinaryIO | None
            Local output stream (default: process stdout)
        stderr : BinaryIO | None
            Local error stream (default: process stderr)

        Returns
        -------
        int
            Remote exit status

        Raises
        ------
        RuntimeError
            If SSH connection is not established
        ValueError
            If command is empty or exceeds maximum length
        """
        if not command or not command.strip():
            raise ValueError("Command cannot be empty")

        if len(command) > MAX_COMMAND_LENGTH:
            raise ValueError(
                f"Command length ({len(command)}) exceeds maximum of "
                f"{MAX_COMMAND_LENGTH} characters"
            )

        if not self.client:
            raise RuntimeError("SSH connection not established")

        stdin = stdin if stdin is not None else sys.stdin.buffer
        stdout = stdout if stdout is not None else sys.stdout.buffer
        stderr = stderr if stderr is not None else sys.stderr.buffer

        transport = self.client.get_transport()
        if transport is None or not transport.is_active():
            raise RuntimeError("SSH connection not established")

        channel = transport.open_session()
        self._active_channel = channel

        try:
            channel.exec_command(command)

            pump = threading.Thread(
                target=self._pump_stdin, args=(channel, stdin), daemon=True
            )
            pump.start()

            while True:
                received = self._drain(channel, stdout, stderr)

                if (
                    channel.exit_status_ready()
                    and not channel.recv_ready()
                    and not channel.recv_stderr_ready()
                ):
                    break

                if not received:
                    time.sleep(IDLE_POLL_SECONDS)

            return channel.recv_exit_status()

        finally:
            channel.close()
            self._active_channel = None

    def close(self) -> None:
        """Close SSH connection and clean up resources."""
        if self._active_channel is not None:
            try:
                self._active_channel.close()
            except Exception as exc:  # pragma: no cover
                logger.debug("Failed to close active SSH channel: %s", exc)
            finally:
                self._active_channel = None

        if self.client:
            self.client.close()
            self.client = None
