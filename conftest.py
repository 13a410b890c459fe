"""Shared fixtures: a scripted completion provider and recording command runners."""

import json
import threading

import pytest

from ai_debug_agent.core.config import SessionConfig
from ai_debug_agent.modules.execution import CommandExecutor
from ai_debug_agent.utils.ai_call import CompletionError


class ScriptedProvider:
    """Completion provider that replays queued analysis responses."""

    def __init__(self, responses=None, summary="Root cause: disk full", final_error=None):
        self.responses = list(responses or [])
        self.summary = summary
        self.final_error = final_error
        self.analysis_prompts = []
        self.final_prompts = []

    def request_completion_with_schema(self, prompt, response_model):
        self.analysis_prompts.append(prompt)
        item = self.responses.pop(0) if self.responses else {
            "analysis": "ok", "recommendations": [], "final": False,
        }
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return item
        return json.dumps(item)

    def request_completion(self, prompt):
        self.final_prompts.append(prompt)
        if self.final_error is not None:
            raise CompletionError(self.final_error)
        return self.summary


class RecordingRunner:
    """Local runner that records every command instead of spawning a shell."""

    def __init__(self, outputs=None):
        self.outputs = outputs or {}
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, command, timeout):
        with self._lock:
            self.calls.append(command)
        return self.outputs.get(command, f"output of {command}\n"), None


@pytest.fixture
def provider_factory():
    return ScriptedProvider


@pytest.fixture
def recording_runner():
    return RecordingRunner()


@pytest.fixture
def fake_executor(recording_runner):
    return CommandExecutor(local_runner=recording_runner, timeout=1, max_workers=4)


@pytest.fixture
def session_config():
    return SessionConfig(
        issue_description="Web server returns 502",
        initial_commands=("df -h", "free -h"),
    )
