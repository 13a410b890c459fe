"""
Command Admission Policy

Decides whether a literal command string may run, given the allow-list
(whitelist) or deny-list (blacklist) of command prefixes in a SessionConfig.
List entries are literal text: an entry matches when the command starts with
it and the next character is whitespace or the end of the string.
"""
import re
import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


def _prefix_pattern(entry: str) -> "re.Pattern[str]":
    return re.compile("^" + re.escape(entry) + r"(\s|$)")


def matches_prefix(command: str, entries: Iterable[str]) -> Optional[str]:
    """
    Return the first entry that matches command as a literal prefix.

    Args:
        command: Command string to test
        entries: Configured prefixes

    Returns:
        The matching entry, or None
    """
    for entry in entries:
        if _prefix_pattern(entry).match(command):
            return entry
    return None


def is_command_allowed(command: str, config) -> bool:
    """
    Check a command against the session's allow/deny lists.

    A non-empty whitelist takes precedence and the blacklist is then ignored.
    A missing config denies everything.

    Args:
        command: Literal command string
        config: SessionConfig (or any object with command_whitelist/command_blacklist)

    Returns:
        True if the command may run
    """
    if config is None:
        logger.warning("No session config provided, allowing nothing.")
        return False

    whitelist = tuple(getattr(config, "command_whitelist", ()) or ())
    blacklist = tuple(getattr(config, "command_blacklist", ()) or ())

    if whitelist:
        entry = matches_prefix(command, whitelist)
        if entry is not None:
            logger.debug(f"Command '{command}' is allowed by whitelist pattern '{entry}'")
            return True
        logger.warning(f"Command '{command}' is NOT allowed by whitelist")
        return False

    if blacklist:
        entry = matches_prefix(command, blacklist)
        if entry is not None:
            logger.warning(f"Command '{command}' is disallowed by blacklist pattern '{entry}'")
            return False
        logger.debug(f"Command '{command}' is allowed by default (not in blacklist)")
        return True

    logger.debug(f"No command restrictions configured, allowing command '{command}'")
    return True


def rejection_reason(command: str, config) -> str:
    """Result text recorded on an action the policy refused to run."""
    if config is None:
        return f"[REJECTED] '{command}' was not executed: no command policy configured"
    if getattr(config, "command_whitelist", None):
        return f"[REJECTED] '{command}' was not executed: not in the command whitelist"
    return f"[REJECTED] '{command}' was not executed: matches the command blacklist"
