"""
SSH Host Key Verification

Checks a server's host key against the user's known_hosts before any
credentials are offered. Verification is enforced unless the caller
explicitly opts out, in which case any key is accepted and a warning is
logged for every host.
"""

import os
import base64
import hashlib
import logging
from typing import Optional

import paramiko
from paramiko.hostkeys import HostKeys
from paramiko.pkey import PKey

logger = logging.getLogger(__name__)

DEFAULT_KNOWN_HOSTS = "~/.ssh/known_hosts"


class HostKeyVerificationError(paramiko.SSHException):
    """Raised when host key verification fails."""
    pass


def get_key_fingerprint(key: PKey) -> str:
    """Return the OpenSSH-style SHA256 fingerprint of a public key."""
    digest = hashlib.sha256(key.asbytes()).digest()
    return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


def known_hosts_name(hostname: str, port: int) -> str:
    """Name under which known_hosts stores a host (bracketed for non-standard ports)."""
    if int(port) == 22:
        return hostname
    return f"[{hostname}]:{port}"


class HostKeyVerifier:
    """
    Verifies server host keys against known_hosts.

    Args:
        strict: Reject unknown or mismatching keys (default). When False the
            key is accepted unverified.
        known_hosts_path: known_hosts file to load
    """

    def __init__(self, strict: bool = True, known_hosts_path: Optional[str] = None):
        self.strict = strict
        self.known_hosts_path = os.path.expanduser(known_hosts_path or DEFAULT_KNOWN_HOSTS)
        self.host_keys = HostKeys()
        if strict:
            self._load_known_hosts()

    def _load_known_hosts(self):
        if not os.path.exists(self.known_hosts_path):
            logger.debug(f"No known_hosts file at {self.known_hosts_path}")
            return
        try:
            self.host_keys.load(self.known_hosts_path)
            logger.debug(f"Loaded {len(self.host_keys)} host keys from {self.known_hosts_path}")
        except (IOError, paramiko.SSHException) as e:
            logger.warning(f"Failed to load known_hosts {self.known_hosts_path}: {e}")

    def verify(self, hostname: str, port: int, key: PKey) -> None:
        """
        Verify the key presented by hostname.

        Raises:
            HostKeyVerificationError: If the key is unknown or does not match
        """
        key_type = key.get_name()
        fingerprint = get_key_fingerprint(key)

        if not self.strict:
            logger.warning(
                f"Host key verification disabled: accepting {key_type} key {fingerprint} "
                f"for {hostname} without checking"
            )
            return

        name = known_hosts_name(hostname, port)
        entry = self.host_keys.lookup(name)
        if entry is None:
            raise HostKeyVerificationError(
                f"Host key verification failed for {hostname}. "
                f"Unknown {key_type} key with fingerprint {fingerprint}"
            )
        if not self.host_keys.check(name, key):
            raise HostKeyVerificationError(
                f"Host key verification failed for {hostname}. "
                f"{key_type} key {fingerprint} does not match known_hosts"
            )
        logger.debug(f"Host key for {hostname} verified ({fingerprint})")
