import threading
import time

from ai_debug_agent.models import Action, ActionStatus, Batch
from ai_debug_agent.modules.execution import CommandExecutor


def test_run_commands_real_shell_scenario() -> None:
    executor = CommandExecutor(timeout=5)

    results = executor.run_commands(["echo A", "echo B"])

    assert results == {"echo A": "A\n", "echo B": "B\n"}


def test_run_commands_returns_one_result_per_distinct_command(recording_runner) -> None:
    executor = CommandExecutor(local_runner=recording_runner)
    commands = [f"echo {i}" for i in range(12)]

    results = executor.run_commands(commands + ["echo 0"])

    assert set(results) == set(commands)
    assert sorted(recording_runner.calls) == sorted(commands)


def test_run_actions_completes_local_actions_in_place() -> None:
    batch = Batch(description="Initial commands")
    first = batch.add_action("echo A")
    second = batch.add_action("echo B")

    results = CommandExecutor(timeout=5).run_actions(batch.actions)

    assert results == {first.id: "A\n", second.id: "B\n"}
    assert first.result == "A\n" and second.result == "B\n"
    assert first.status == ActionStatus.COMPLETED
    assert second.status == ActionStatus.COMPLETED
    assert first.timestamp


def test_timeout_is_recorded_not_raised() -> None:
    batch = Batch(description="slow")
    slow = batch.add_action("sleep 10")
    fast = batch.add_action("echo fast")

    CommandExecutor(timeout=0.5).run_actions(batch.actions)

    assert "[ERROR]" in slow.result and "timed out" in slow.result
    assert fast.result == "fast\n"


def test_duplicate_commands_are_completed_independently(recording_runner) -> None:
    batch = Batch(description="dupes")
    first = batch.add_action("uptime")
    second = batch.add_action("uptime")

    results = CommandExecutor(local_runner=recording_runner).run_actions(batch.actions)

    assert len(results) == 2
    assert first.is_completed() and second.is_completed()
    assert recording_runner.calls == ["uptime", "uptime"]


def test_remote_actions_resolve_credentials_once_per_target() -> None:
    resolved = []
    remote_calls = []

    def resolver(target):
        resolved.append(target)
        return ["key"]

    def remote_runner(target, keys, command, timeout, strict):
        remote_calls.append((target.host, tuple(keys), command, strict))
        return f"[{target.host}] {command}", None

    batch = Batch(description="remote")
    a = batch.add_action("uptime", remote="alice@web1:2222")
    b = batch.add_action("df -h", remote="alice@web1:2222")
    c = batch.add_action("free -h", remote="db1")
    local = batch.add_action("hostname")

    executor = CommandExecutor(
        local_runner=lambda command, timeout: ("local\n", None),
        remote_runner=remote_runner,
        auth_resolver=resolver,
        strict_host_key_checking=False,
    )
    executor.run_actions(batch.actions)

    assert [t.host for t in resolved] == ["web1", "db1"]
    assert resolved[0].port == "2222" and resolved[0].user == "alice"
    assert resolved[1].user == "root"
    assert len(remote_calls) == 3
    assert all(call[1] == ("key",) and call[3] is False for call in remote_calls)
    assert a.result == "[web1] uptime"
    assert b.result == "[web1] df -h"
    assert c.result == "[db1] free -h"
    assert local.result == "local\n"


def test_malformed_remote_target_does_not_block_others(recording_runner) -> None:
    batch = Batch(description="bad remote")
    broken = batch.add_action("uptime", remote="a@b@c")
    local = batch.add_action("hostname")

    executor = CommandExecutor(local_runner=recording_runner, auth_resolver=lambda target: [])
    executor.run_actions(batch.actions)

    assert broken.is_completed()
    assert "invalid remote target" in broken.result
    assert local.result == "output of hostname\n"


def test_worker_exception_becomes_error_result() -> None:
    def flaky(command, timeout):
        if command == "boom":
            raise RuntimeError("runner crashed")
        return "fine\n", None

    batch = Batch(description="flaky")
    bad = batch.add_action("boom")
    good = batch.add_action("ok")

    CommandExecutor(local_runner=flaky).run_actions(batch.actions)

    assert "[ERROR]" in bad.result and "runner crashed" in bad.result
    assert good.result == "fine\n"


def test_worker_pool_is_bounded() -> None:
    lock = threading.Lock()
    state = {"running": 0, "peak": 0}

    def runner(command, timeout):
        with lock:
            state["running"] += 1
            state["peak"] = max(state["peak"], state["running"])
        time.sleep(0.05)
        with lock:
            state["running"] -= 1
        return command, None

    executor = CommandExecutor(local_runner=runner, max_workers=2)
    results = executor.run_commands([f"cmd {i}" for i in range(8)])

    assert len(results) == 8
    assert state["peak"] <= 2


def test_completed_and_non_command_actions_are_skipped(recording_runner) -> None:
    done = Action(name="uptime")
    done.complete("earlier")

    results = CommandExecutor(local_runner=recording_runner).run_actions([done])

    assert results == {}
    assert done.result == "earlier"
    assert recording_runner.calls == []
