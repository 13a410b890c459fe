"""
SSH Client Module
Parses remote targets, discovers local private keys and executes single
commands on a remote host over paramiko.
"""
import io
import time
import socket
import logging
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple

import paramiko
from paramiko.pkey import PKey
from paramiko.ssh_exception import AuthenticationException

from .hostkeys import HostKeyVerifier

logger = logging.getLogger(__name__)

DEFAULT_USER = "root"
DEFAULT_PORT = "22"
CONNECT_TIMEOUT = 5
DEFAULT_SSH_DIR = "~/.ssh"

_KEY_LOADERS = (
    paramiko.RSAKey,
    paramiko.ECDSAKey,
    paramiko.Ed25519Key,
)


class InvalidRemoteError(ValueError):
    """Raised when a remote target is not in user@host[:port] form."""
    pass


class RemoteTarget(NamedTuple):
    user: str
    host: str
    port: str

    def __str__(self):
        return f"{self.user}@{self.host}:{self.port}"


def parse_remote(remote: str) -> RemoteTarget:
    """
    Parse a remote target in user@host[:port] form.

    Args:
        remote: Target string, e.g. "alice@10.0.0.5:2222" or "10.0.0.5"

    Returns:
        RemoteTarget with user defaulting to "root" and port to "22"

    Raises:
        InvalidRemoteError: On more than one '@' or ':' or an empty host
    """
    user = DEFAULT_USER
    port = DEFAULT_PORT

    parts = remote.strip().split("@")
    if len(parts) == 1:
        host = parts[0]
    elif len(parts) == 2:
        user, host = parts
    else:
        logger.error(f"Invalid remote format, expecting user@host:port but got '{remote}'")
        raise InvalidRemoteError(f"invalid remote format: {remote}")

    if ":" in host:
        host_parts = host.split(":")
        if len(host_parts) != 2:
            logger.error(f"Invalid remote format, expecting user@host:port but got '{remote}'")
            raise InvalidRemoteError(f"invalid remote format: {remote}")
        host, port = host_parts

    if not host or not user or not port:
        raise InvalidRemoteError(f"invalid remote format: {remote}")
    if not port.isdigit():
        raise InvalidRemoteError(f"invalid port in remote: {remote}")

    return RemoteTarget(user=user, host=host, port=port)


def _is_public_key(path: Path) -> bool:
    return path.suffix == ".pub"


def load_private_key(key_data: str, passphrase: Optional[str] = None) -> Optional[PKey]:
    """Load a private key from string data, trying each supported key type."""
    key_file = io.StringIO(key_data)
    for key_loader in _KEY_LOADERS:
        try:
            key_file.seek(0)
            return key_loader.from_private_key(key_file, password=passphrase)
        except Exception:
            continue
    return None


def discover_private_keys(ssh_dir: Optional[str] = None) -> List[PKey]:
    """
    Load every private key in the default credential directory (~/.ssh/id_*).

    Public keys are skipped; keys that cannot be parsed (including
    passphrase-protected ones) are skipped with a warning.

    Returns:
        List of loaded keys, possibly empty
    """
    base = Path(ssh_dir or DEFAULT_SSH_DIR).expanduser()
    keys = []
    for path in sorted(base.glob("id_*")):
        if _is_public_key(path):
            logger.debug(f"Public key found. Skipping file {path}")
            continue
        try:
            key_data = path.read_text()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read SSH key {path}: {e}")
            continue
        key = load_private_key(key_data)
        if key is None:
            logger.warning(f"Failed to parse SSH key {path}")
            continue
        logger.debug(f"Loaded SSH key: {path}")
        keys.append(key)
    logger.debug(f"Available SSH keys: {len(keys)}")
    return keys


def _authenticate(transport: paramiko.Transport, username: str, keys: List[PKey]) -> None:
    if not keys:
        raise AuthenticationException("no private keys available for authentication")
    last_error = None
    for key in keys:
        try:
            transport.auth_publickey(username, key)
            logger.info(f"Key authentication successful with {key.get_name()} key")
            return
        except AuthenticationException as e:
            last_error = e
            continue
    raise AuthenticationException(f"all {len(keys)} keys rejected: {last_error}")


def _open_transport(target: RemoteTarget, keys: List[PKey], verifier: HostKeyVerifier) -> paramiko.Transport:
    sock = socket.create_connection((target.host, int(target.port)), timeout=CONNECT_TIMEOUT)
    transport = paramiko.Transport(sock)
    try:
        transport.start_client(timeout=CONNECT_TIMEOUT)
        verifier.verify(target.host, int(target.port), transport.get_remote_server_key())
        _authenticate(transport, target.user, keys)
    except Exception:
        transport.close()
        raise
    return transport


def _read_channel(channel, deadline: float, timeout: float) -> bytes:
    chunks = []
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise socket.timeout(f"command timed out after {timeout:g}s")
        channel.settimeout(remaining)
        data = channel.recv(32768)
        if not data:
            break
        chunks.append(data)
    return b"".join(chunks)


def _wait_exit_status(channel, deadline: float, timeout: float) -> int:
    # EOF does not guarantee the server has sent the exit status yet
    remaining = max(deadline - time.monotonic(), 0)
    if not channel.status_event.wait(remaining):
        raise socket.timeout(f"command timed out after {timeout:g}s waiting for exit status")
    return channel.recv_exit_status()


def run_remote_command(target: RemoteTarget,
                       keys: List[PKey],
                       command: str,
                       timeout: float,
                       strict_host_key_checking: bool = True) -> Tuple[str, Optional[str]]:
    """
    Execute a command on a remote host over SSH.

    Args:
        target: Parsed remote target
        keys: Private keys offered for public-key authentication
        command: Shell command to execute
        timeout: Seconds allowed for the command to finish
        strict_host_key_checking: Verify the host key against known_hosts

    Returns:
        tuple: (output_str, error_str or None). Output carries a "[host]"
        prefixed explanation when the connection or command failed.
    """
    host = target.host
    logger.info(f"Connecting to {target.user}@{host}:{target.port} with command: {command}")
    verifier = HostKeyVerifier(strict=strict_host_key_checking)

    try:
        transport = _open_transport(target, keys, verifier)
    except Exception as e:
        logger.error(f"SSH connection failed to {target}: {e}")
        return f"[{host}] Failed to connect: {e}", str(e)

    try:
        try:
            channel = transport.open_session(timeout=CONNECT_TIMEOUT)
        except Exception as e:
            logger.error(f"Failed to create session on {host}: {e}")
            return f"[{host}] Failed to create session: {e}", str(e)

        try:
            channel.set_combine_stderr(True)
            channel.exec_command(command)
            deadline = time.monotonic() + timeout
            output = _read_channel(channel, deadline, timeout).decode("utf-8", errors="replace")
            exit_status = _wait_exit_status(channel, deadline, timeout)
        except Exception as e:
            logger.error(f"Command execution failed on {host}: {e}")
            return f"[{host}]\n[ERROR] {e}", str(e)
        finally:
            channel.close()

        if exit_status != 0:
            error = f"Process exited with status {exit_status}"
            return f"[{host}] {output.strip()}\n[ERROR] {error}", error
        return output, None
    finally:
        transport.close()
