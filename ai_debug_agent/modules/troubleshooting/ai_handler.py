"""
AI Handler for Troubleshooting Module
Asks the completion service to interpret command outputs and recommend the
next diagnostic commands.
"""
import logging
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ...utils.ai_call import CompletionError
from .prompts import MAX_RECOMMENDATIONS, get_quick_check_prompt

logger = logging.getLogger(__name__)


class AnalysisError(RuntimeError):
    """Raised when a batch analysis could not be obtained or parsed."""
    pass


class CommandAnalysisResponse(BaseModel):
    """Structured answer the model must return for every batch."""

    model_config = ConfigDict(extra="forbid")

    analysis: str = Field(
        ...,
        description="Analysis of the command outputs within the context of the current issue",
    )
    recommendations: List[str] = Field(
        ...,
        description="Recommended list of shell commands to execute as next steps to diagnose or resolve the issue",
    )
    final: bool = Field(
        ...,
        description=(
            "Set to true if you are confident the debugging process is complete and no further "
            "commands are needed. Set to false if more steps are recommended."
        ),
    )

    @field_validator("recommendations")
    @classmethod
    def _drop_blank(cls, value: List[str]) -> List[str]:
        return [command.strip() for command in value if command and command.strip()]


def analyze_commands(prompt: str, provider) -> CommandAnalysisResponse:
    """
    Analyze a batch through the completion provider in schema mode.

    Args:
        prompt: Output of get_command_analysis_prompt()
        provider: CompletionProvider

    Returns:
        CommandAnalysisResponse with at most MAX_RECOMMENDATIONS recommendations

    Raises:
        AnalysisError: If the call fails or the response does not match the schema
    """
    logger.debug(f"Analyzing commands with prompt: {prompt}")
    try:
        raw = provider.request_completion_with_schema(prompt, CommandAnalysisResponse)
    except CompletionError as e:
        logger.error(f"Error analyzing commands: {e}")
        raise AnalysisError(f"error analyzing commands: {e}") from e

    try:
        response = CommandAnalysisResponse.model_validate_json(raw)
    except ValidationError as e:
        logger.error(f"Failed to parse analysis response: {e}")
        raise AnalysisError(f"failed to parse analysis response: {e}") from e

    if len(response.recommendations) > MAX_RECOMMENDATIONS:
        logger.warning(
            f"Model returned {len(response.recommendations)} recommendations, "
            f"keeping the first {MAX_RECOMMENDATIONS}"
        )
        response.recommendations = response.recommendations[:MAX_RECOMMENDATIONS]

    return response


def summarize_command_outputs(results: Dict[str, str], provider) -> str:
    """
    Free-text analysis of a set of command outputs.

    Errors are returned as text rather than raised.
    """
    try:
        return provider.request_completion(get_quick_check_prompt(results))
    except CompletionError as e:
        logger.error(f"Error analyzing commands: {e}")
        return f"Error analyzing commands: {e}"
