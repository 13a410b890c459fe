import json
from types import SimpleNamespace

import openai
import pytest

from ai_debug_agent.modules.troubleshooting import CommandAnalysisResponse
from ai_debug_agent.utils import CompletionError, MissingCredentialsError, OpenAIProvider, get_openai_client


class FakeCompletions:
    def __init__(self, content=None, error=None, choices=True):
        self.content = content
        self.error = error
        self.choices = choices
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if not self.choices:
            return SimpleNamespace(choices=[])
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


def _provider(completions: FakeCompletions) -> OpenAIProvider:
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIProvider(model="test-model", system_prompt="be brief", client=client)


def test_request_completion_sends_system_and_user_messages() -> None:
    completions = FakeCompletions(content="all healthy")

    assert _provider(completions).request_completion("check this") == "all healthy"

    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["messages"] == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "check this"},
    ]
    assert "response_format" not in call


def test_schema_request_returns_validated_json() -> None:
    body = json.dumps({"analysis": "ok", "recommendations": ["df -h"], "final": False})
    completions = FakeCompletions(content=body)

    assert _provider(completions).request_completion_with_schema("p", CommandAnalysisResponse) == body

    response_format = completions.calls[0]["response_format"]
    assert response_format["type"] == "json_schema"
    assert response_format["json_schema"]["name"] == "CommandAnalysisResponse"
    assert response_format["json_schema"]["strict"] is True
    assert "recommendations" in response_format["json_schema"]["schema"]["properties"]


def test_schema_mismatch_raises_completion_error() -> None:
    completions = FakeCompletions(content='{"analysis": "ok"}')

    with pytest.raises(CompletionError, match="not valid according to the schema"):
        _provider(completions).request_completion_with_schema("p", CommandAnalysisResponse)


def test_api_failure_raises_completion_error() -> None:
    completions = FakeCompletions(error=openai.OpenAIError("connection reset"))

    with pytest.raises(CompletionError, match="connection reset"):
        _provider(completions).request_completion("p")


@pytest.mark.parametrize("completions", [FakeCompletions(choices=False), FakeCompletions(content="")])
def test_empty_response_raises_completion_error(completions: FakeCompletions) -> None:
    with pytest.raises(CompletionError):
        _provider(completions).request_completion("p")


def test_missing_api_key_raises(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(MissingCredentialsError):
        get_openai_client()


def test_client_uses_explicit_key_and_base_url(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    client = get_openai_client(api_key="sk-test", base_url="http://localhost:8080/v1")

    assert client.api_key == "sk-test"
    assert str(client.base_url).startswith("http://localhost:8080/v1")
