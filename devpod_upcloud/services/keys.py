"""Workspace SSH key material stored in the DevPod machine folder."""

from __future__ import annotations

import logging
from pathlib import Path

import paramiko

logger = logging.getLogger(__name__)

PRIVATE_KEY_FILENAME = "id_devpod_rsa"
PUBLIC_KEY_FILENAME = "id_devpod_rsa.pub"

RSA_KEY_BITS = 4096
"""Size of generated workspace keys."""


class MachineKeys:
    """RSA key pair owned by one DevPod machine.

    The pair is generated on first use and reused by later commands, so the
    key installed on the server at creation time also authenticates
    ``command`` invocations.

    Parameters
    ----------
    machine_folder : str | Path
        DevPod machine folder
    bits : int
        Key size used when a new pair is generated
    """

    def __init__(self, machine_folder: str | Path, bits: int = RSA_KEY_BITS) -> None:
        self.machine_folder = Path(machine_folder)
        self.bits = bits

    @property
    def private_key_path(self) -> Path:
        return self.machine_folder / PRIVATE_KEY_FILENAME

    @property
    def public_key_path(self) -> Path:
        return self.machine_folder / PUBLIC_KEY_FILENAME

    def ensure(self) -> None:
        """Generate the key pair unless the private key already exists."""
        if self.private_key_path.exists():
            if not self.public_key_path.exists():
                key = self.load_private_key()
                self._write_public_key(key)
            return

        logger.debug("Generating workspace key pair in %s", self.machine_folder)
        self.machine_folder.mkdir(parents=True, exist_ok=True)

        key = paramiko.RSAKey.generate(bits=self.bits)
        key.write_private_key_file(str(self.private_key_path))
        self.private_key_path.chmod(0o600)
        self._write_public_key(key)

    def _write_public_key(self, key: paramiko.PKey) -> None:
        self.public_key_path.write_text(f"{key.get_name()} {key.get_base64()}\n")
        self.public_key_path.chmod(0o644)

    def public_key(self) -> str:
        """Return the OpenSSH public key, generating the pair if needed."""
        self.ensure()
        return self.public_key_path.read_text().strip()

    def load_private_key(self) -> paramiko.RSAKey:
        """Load the private key.

        Raises
        ------
        FileNotFoundError
            If the machine folder holds no private key
        paramiko.SSHException
            If the key file cannot be parsed
        """
        if not self.private_key_path.exists():
            raise FileNotFoundError(
                f"No private key found at {self.private_key_path}"
            )
        return paramiko.RSAKey.from_private_key_file(str(self.private_key_path))
