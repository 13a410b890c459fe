"""
Local Command Runner

Runs one shell command on the local host with a timeout and captures its
combined stdout/stderr. Failures are returned as data, never raised.
"""
import os
import signal
import logging
import subprocess
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

MAX_OUTPUT_LENGTH = 1024  # bytes kept before truncation
TRUNCATION_MARKER = "...[truncated]"
DEFAULT_SHELL = "bash"
KILL_GRACE_PERIOD = 1.0  # seconds to drain output after a timeout kill


def truncate_output(raw: bytes, limit: int = MAX_OUTPUT_LENGTH) -> str:
    """Decode command output, cutting it to limit bytes with a visible marker."""
    if len(raw) > limit:
        return raw[:limit].decode("utf-8", errors="replace") + TRUNCATION_MARKER
    return raw.decode("utf-8", errors="replace")


def format_result(output: str, error: Optional[str]) -> str:
    """Combine output and an optional error into the text stored on an action."""
    if error:
        return f"{output}\n[ERROR] {error}"
    return output


def _kill_process_group(process: subprocess.Popen) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except OSError as e:
        logger.debug(f"killpg failed for pid {process.pid}: {e}, killing process only")
        process.kill()


def _drain_after_kill(process: subprocess.Popen, partial: Optional[bytes]) -> bytes:
    """
    Collect what the killed command wrote without waiting on its pipe forever.

    A detached grandchild can outlive the process group and keep stdout open,
    so the pipe is closed once KILL_GRACE_PERIOD has passed.
    """
    try:
        raw, _ = process.communicate(timeout=KILL_GRACE_PERIOD)
        return raw or partial or b""
    except subprocess.TimeoutExpired as e:
        logger.debug(f"Output pipe of pid {process.pid} still open after kill, closing it")
        if process.stdout is not None:
            process.stdout.close()
        process.wait()
        return e.output or partial or b""


def run_local_command(command: str, timeout: float, shell: str = DEFAULT_SHELL) -> Tuple[str, Optional[str]]:
    """
    Execute a command through the shell on the local host.

    The command runs in its own process group so a timeout also stops any
    children it spawned.

    Args:
        command: Shell command to execute
        timeout: Seconds before the command is killed
        shell: Shell binary used with -c

    Returns:
        tuple: (output_str, error_str or None)
    """
    logger.debug(f"Running local command: {command}")
    try:
        process = subprocess.Popen(
            [shell, "-c", command],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )
    except OSError as e:
        logger.error(f"Failed to start command '{command}': {e}")
        return "", f"failed to start command: {e}"

    try:
        raw, _ = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired as e:
        _kill_process_group(process)
        raw = _drain_after_kill(process, e.output)
        logger.warning(f"Command '{command}' timed out after {timeout:g}s")
        return truncate_output(raw or b""), f"command timed out after {timeout:g}s"

    output = truncate_output(raw or b"")
    if process.returncode != 0:
        if process.returncode < 0:
            return output, f"signal: killed by signal {-process.returncode}"
        return output, f"exit status {process.returncode}"
    return output, None
