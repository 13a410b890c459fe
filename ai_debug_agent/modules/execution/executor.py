"""
Command Execution Subsystem

Runs a batch of actions concurrently, locally or over SSH, on a bounded
worker pool and writes each result back onto its originating action by
action id. The call returns only when every submitted command has either
completed or reported its own failure.
"""

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Tuple

from ..ssh.client import (
    InvalidRemoteError,
    RemoteTarget,
    discover_private_keys,
    parse_remote,
    run_remote_command,
)
from ...models import Action
from .local_runner import format_result, run_local_command

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_WORKERS = 8

LocalRunner = Callable[[str, float], Tuple[str, Optional[str]]]
RemoteRunner = Callable[..., Tuple[str, Optional[str]]]
AuthResolver = Callable[[RemoteTarget], list]


def default_auth_resolver(target: RemoteTarget) -> list:
    """Private keys offered to every remote target: everything in ~/.ssh/id_*."""
    return discover_private_keys()


class CommandExecutor:
    """
    Executes commands for diagnostic batches.

    Args:
        local_runner: (command, timeout) -> (output, error)
        remote_runner: (target, keys, command, timeout, strict_host_key_checking) -> (output, error)
        auth_resolver: target -> private keys, called once per distinct target
        timeout: Per-command timeout in seconds
        max_workers: Size of the worker pool shared by local and remote commands
        strict_host_key_checking: Verify remote host keys against known_hosts
    """

    def __init__(self,
                 local_runner: LocalRunner = run_local_command,
                 remote_runner: RemoteRunner = run_remote_command,
                 auth_resolver: AuthResolver = default_auth_resolver,
                 timeout: float = DEFAULT_TIMEOUT,
                 max_workers: int = DEFAULT_MAX_WORKERS,
                 strict_host_key_checking: bool = True):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.local_runner = local_runner
        self.remote_runner = remote_runner
        self.auth_resolver = auth_resolver
        self.timeout = timeout
        self.max_workers = max_workers
        self.strict_host_key_checking = strict_host_key_checking

    @classmethod
    def from_config(cls, config, **kwargs) -> "CommandExecutor":
        """Build an executor from a SessionConfig's timeout, pool size and host key policy."""
        kwargs.setdefault("timeout", config.command_timeout)
        kwargs.setdefault("max_workers", config.max_workers)
        kwargs.setdefault("strict_host_key_checking", config.strict_host_key_checking)
        return cls(**kwargs)

    def _run_local(self, command: str) -> str:
        output, error = self.local_runner(command, self.timeout)
        return format_result(output, error)

    def _run_remote(self, target: RemoteTarget, keys: list, command: str) -> str:
        # Remote output already carries the "[host] ... [ERROR]" annotation on failure
        output, _ = self.remote_runner(
            target, keys, command, self.timeout, self.strict_host_key_checking
        )
        return output

    def _resolve_keys(self, target: RemoteTarget) -> list:
        try:
            return list(self.auth_resolver(target) or [])
        except Exception as e:
            logger.warning(f"Failed to resolve SSH credentials for {target}: {e}")
            return []

    def _pool(self, jobs: int) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, jobs)),
            thread_name_prefix="opsmedic-cmd",
        )

    def _collect(self, futures: Dict, results: Dict[str, str]) -> None:
        wait(futures)
        for future, key in futures.items():
            try:
                results[key] = future.result()
            except Exception as e:
                logger.error(f"Command worker for {key} failed: {e}")
                results[key] = format_result("", f"unexpected execution error: {e}")

    def run_commands(self, commands: List[str]) -> Dict[str, str]:
        """
        Run local commands concurrently.

        Args:
            commands: Shell commands; duplicates run once

        Returns:
            dict mapping each distinct command to its result text
        """
        unique = list(OrderedDict.fromkeys(commands))
        logger.info(f"Running {len(unique)} local commands in parallel")
        results: Dict[str, str] = {}
        if not unique:
            return results

        with self._pool(len(unique)) as pool:
            futures = {pool.submit(self._run_local, command): command for command in unique}
            self._collect(futures, results)
        return results

    def run_actions(self, actions: List[Action]) -> Dict[str, str]:
        """
        Execute the pending command actions and complete them in place.

        Actions with a remote target run over SSH, the rest run locally.
        Each distinct remote target is parsed and its credentials resolved once.

        Args:
            actions: Actions of the current batch

        Returns:
            dict mapping action id to result text
        """
        local_actions: List[Action] = []
        remote_actions: "OrderedDict[str, List[Action]]" = OrderedDict()

        for action in actions:
            if action.is_completed():
                logger.debug(f"Skipping already completed action: {action.name}")
                continue
            if not action.is_command():
                logger.debug(f"Skipping non-command action: {action.name}")
                continue
            if action.is_remote():
                remote_actions.setdefault(action.remote, []).append(action)
            else:
                local_actions.append(action)

        total = len(local_actions) + sum(len(group) for group in remote_actions.values())
        logger.info(f"Running commands in parallel for {total} actions")
        results: Dict[str, str] = {}
        if total == 0:
            return results

        with self._pool(total) as pool:
            futures = {}
            for action in local_actions:
                futures[pool.submit(self._run_local, action.name)] = action.id

            for remote, group in remote_actions.items():
                try:
                    target = parse_remote(remote)
                except InvalidRemoteError as e:
                    logger.error(f"Failed to parse remote host {remote} for {len(group)} commands: {e}")
                    for action in group:
                        results[action.id] = format_result("", f"invalid remote target '{remote}': {e}")
                    continue
                keys = self._resolve_keys(target)
                for action in group:
                    futures[pool.submit(self._run_remote, target, keys, action.name)] = action.id

            self._collect(futures, results)

        by_id = {action.id: action for action in actions}
        for action_id, result in results.items():
            action = by_id.get(action_id)
            if action is None:
                logger.warning(f"No action found for result id: {action_id}")
                continue
            if action.is_remote():
                logger.info(f"Updating action {action.name} with remote output from {action.remote}")
            action.complete(result)

        return results
