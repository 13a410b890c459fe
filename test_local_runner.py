import time

from ai_debug_agent.modules.execution.local_runner import (
    MAX_OUTPUT_LENGTH,
    TRUNCATION_MARKER,
    format_result,
    run_local_command,
    truncate_output,
)


def test_captures_combined_output() -> None:
    output, error = run_local_command("echo out; echo err 1>&2", timeout=5)

    assert error is None
    assert "out\n" in output
    assert "err\n" in output


def test_nonzero_exit_reports_status() -> None:
    output, error = run_local_command("echo partial; exit 3", timeout=5)

    assert output == "partial\n"
    assert error == "exit status 3"


def test_timeout_kills_command() -> None:
    started = time.monotonic()
    output, error = run_local_command("sleep 10", timeout=0.5)

    assert time.monotonic() - started < 5
    assert "timed out" in error


def test_timeout_is_not_held_open_by_detached_child() -> None:
    started = time.monotonic()
    output, error = run_local_command("echo started; setsid sleep 6 & sleep 30", timeout=0.5)

    assert time.monotonic() - started < 3
    assert "timed out" in error
    assert "started" in output


def test_spawn_failure_is_reported() -> None:
    output, error = run_local_command("true", timeout=1, shell="/nonexistent/shell")

    assert output == ""
    assert "failed to start command" in error


def test_long_output_is_truncated() -> None:
    output, error = run_local_command("head -c 5000 /dev/zero | tr '\\0' 'x'", timeout=5)

    assert error is None
    assert output.endswith(TRUNCATION_MARKER)
    assert len(output) == MAX_OUTPUT_LENGTH + len(TRUNCATION_MARKER)


def test_truncate_output_keeps_short_output() -> None:
    assert truncate_output(b"short") == "short"


def test_format_result_appends_error() -> None:
    assert format_result("A\n", None) == "A\n"
    assert format_result("A\n", "exit status 1") == "A\n\n[ERROR] exit status 1"
