"""
SSH Connection Module
Handles remote target parsing, key discovery and remote command execution
"""
from .client import (
    InvalidRemoteError,
    RemoteTarget,
    discover_private_keys,
    parse_remote,
    run_remote_command,
)
from .hostkeys import HostKeyVerificationError, HostKeyVerifier

__all__ = [
    'InvalidRemoteError',
    'RemoteTarget',
    'discover_private_keys',
    'parse_remote',
    'run_remote_command',
    'HostKeyVerificationError',
    'HostKeyVerifier',
]
