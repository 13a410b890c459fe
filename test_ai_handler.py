import pytest

from ai_debug_agent.core.config import SessionConfig
from ai_debug_agent.models import Batch, DebugSession
from ai_debug_agent.modules.troubleshooting import (
    MAX_RECOMMENDATIONS,
    AnalysisError,
    analyze_commands,
    get_command_analysis_prompt,
    get_final_analysis_prompt,
    summarize_command_outputs,
)
from ai_debug_agent.utils.ai_call import CompletionError


def _session(**config_overrides) -> DebugSession:
    config = SessionConfig(issue_description="API latency spikes", initial_commands=("uptime",), **config_overrides)
    session = DebugSession(issue_description=config.issue_description, config=config)
    batch = session.add_batch(Batch(description="Initial commands"))
    batch.add_action("uptime").complete("load average: 9.1")
    batch.analysis = "Load is high"
    batch.completed = True
    return session


def test_analyze_commands_parses_valid_response(provider_factory) -> None:
    provider = provider_factory([{"analysis": "Disk full", "recommendations": ["du -sh /var"], "final": False}])

    response = analyze_commands("prompt", provider)

    assert response.analysis == "Disk full"
    assert response.recommendations == ["du -sh /var"]
    assert response.final is False
    assert provider.analysis_prompts == ["prompt"]


def test_analyze_commands_truncates_recommendations(provider_factory) -> None:
    recommendations = [f"cmd{i}" for i in range(8)]
    provider = provider_factory([{"analysis": "a", "recommendations": recommendations, "final": False}])

    response = analyze_commands("prompt", provider)

    assert response.recommendations == recommendations[:MAX_RECOMMENDATIONS]


def test_analyze_commands_drops_blank_recommendations(provider_factory) -> None:
    provider = provider_factory([{"analysis": "a", "recommendations": ["  ", " df -h ", ""], "final": False}])

    assert analyze_commands("prompt", provider).recommendations == ["df -h"]


@pytest.mark.parametrize("payload", [
    "not json at all",
    '{"analysis": "a", "final": false}',
    '{"analysis": "a", "recommendations": [], "final": false, "extra": 1}',
])
def test_analyze_commands_rejects_malformed_response(provider_factory, payload: str) -> None:
    with pytest.raises(AnalysisError):
        analyze_commands("prompt", provider_factory([payload]))


def test_analyze_commands_wraps_completion_failure(provider_factory) -> None:
    provider = provider_factory([CompletionError("service unavailable")])

    with pytest.raises(AnalysisError, match="service unavailable"):
        analyze_commands("prompt", provider)


def test_analysis_prompt_is_deterministic() -> None:
    session = _session()

    assert get_command_analysis_prompt(session) == get_command_analysis_prompt(session)


def test_analysis_prompt_contains_history() -> None:
    prompt = get_command_analysis_prompt(_session())

    assert "Problem description: API latency spikes" in prompt
    assert "\tBatch: Initial commands\n" in prompt
    assert "\t\tuptime\n" in prompt
    assert "\t\t\tOutput: load average: 9.1\n" in prompt
    assert "\tAnalysis: Load is high\n" in prompt
    assert "NEVER include 'sudo'" in prompt


def test_analysis_prompt_can_omit_outputs_and_analysis() -> None:
    prompt = get_command_analysis_prompt(_session(), include_analysis=False, include_outputs=False)

    assert "Output:" not in prompt
    assert "Analysis: Load is high" not in prompt


def test_analysis_prompt_echoes_policy_lists() -> None:
    whitelisted = get_command_analysis_prompt(_session(command_whitelist=("df", "ps")))
    blacklisted = get_command_analysis_prompt(_session(command_blacklist=("rm",)))
    sudo = get_command_analysis_prompt(_session(use_sudo=True))

    assert "whitelist:\n\t- df\n\t- ps\n" in whitelisted
    assert "NOT in the following blacklist:\n\t- rm\n" in blacklisted
    assert "ALWAYS use 'sudo'" in sudo


def test_final_prompt_is_deterministic() -> None:
    session = _session()
    follow_up = session.add_batch(Batch(description="Follow-up commands"))
    follow_up.add_action("iostat -x 1 1").complete("await 250ms")
    follow_up.analysis = "Disk latency is the bottleneck"
    follow_up.completed = True

    prompt = get_final_analysis_prompt(session)

    assert prompt == get_final_analysis_prompt(session)
    assert prompt.index("Initial commands") < prompt.index("Disk latency is the bottleneck")


def test_final_prompt_uses_completed_batches_only() -> None:
    session = _session()
    session.add_batch(Batch(description="Follow-up commands")).add_action("iostat -x 1 1")

    prompt = get_final_analysis_prompt(session)

    assert "Batch description: Initial commands" in prompt
    assert "Analysis: Load is high" in prompt
    assert "iostat" not in prompt


def test_summarize_command_outputs(provider_factory) -> None:
    provider = provider_factory(summary="All good")

    assert summarize_command_outputs({"uptime": "up 1 day\n"}, provider) == "All good"
    assert provider.final_prompts == ["Command: uptime\nOutput:\nup 1 day\n\n\n"]


def test_summarize_command_outputs_returns_error_text(provider_factory) -> None:
    provider = provider_factory(final_error="quota exceeded")

    assert summarize_command_outputs({"uptime": "x"}, provider).startswith("Error analyzing commands:")
