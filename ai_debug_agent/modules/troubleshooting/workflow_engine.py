"""
Workflow Engine for Troubleshooting Module
Runs the iterative diagnose loop: execute a batch of commands, have the
model analyze the results, then either stop or run the commands it
recommends, and finally ask for a closing summary.
"""
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from ...models import Action, Batch, DebugSession
from ...utils.ai_call import CompletionError
from ..execution.executor import CommandExecutor
from ..execution.local_runner import format_result
from ..security.command_policy import is_command_allowed, rejection_reason
from .ai_handler import AnalysisError, CommandAnalysisResponse, analyze_commands, summarize_command_outputs
from .prompts import get_command_analysis_prompt, get_final_analysis_prompt

logger = logging.getLogger(__name__)

INITIAL_BATCH_DESCRIPTION = "Initial commands"
FOLLOW_UP_BATCH_DESCRIPTION = "Follow-up commands"
CONFIRM_PROMPT = "Do you want to continue with the next batch of commands? (yes/no): "
AFFIRMATIVE_ANSWERS = {"yes", "y"}


class WorkflowConfigError(ValueError):
    """Raised when a workflow cannot start with the given configuration."""
    pass


class WorkflowState(Enum):
    """States of one workflow run"""
    INITIALIZED = "initialized"
    RUNNING = "running"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    FINALIZING = "finalizing"
    TERMINATED = "terminated"


def present_batch(batch: Batch) -> str:
    """Markdown summary of a batch shown between rounds in interactive mode."""
    md = "**Commands:**\n"
    for action in batch.actions:
        md += f"- {action.name}\n"
    md += "\n**Analysis:**\n"
    md += f"{batch.analysis}\n\n"
    md += "**Next Steps:**\n"
    for command in batch.next_steps:
        md += f"- {command}\n"
    return md


class DebugWorkflow:
    """
    Drives one diagnostic session from the initial commands to the final summary.

    Args:
        provider: CompletionProvider used for batch analysis and the final summary
        executor: CommandExecutor; built from the SessionConfig when omitted
        confirm: Prompt function used in interactive mode (defaults to input)
        output: Function used to show text to the user in interactive mode
    """

    def __init__(self, provider,
                 executor: Optional[CommandExecutor] = None,
                 confirm: Optional[Callable[[str], str]] = None,
                 output: Callable[[str], None] = print):
        self.provider = provider
        self.executor = executor
        self.confirm = confirm or input
        self.output = output
        self.state: Optional[WorkflowState] = None

    def initialize(self, config) -> DebugSession:
        """Create the session and its first batch from the configured commands."""
        if config is None:
            raise WorkflowConfigError("a session config is required")
        commands = [command for command in config.initial_commands if command and command.strip()]
        if not commands:
            raise WorkflowConfigError("at least one initial command is required")

        logger.info(f"Initializing debug session with issue: {config.issue_description}")
        logger.info(f"First commands to run: {commands}")

        session = DebugSession(issue_description=config.issue_description, config=config)
        session.start()
        batch = Batch(description=INITIAL_BATCH_DESCRIPTION)
        for command in commands:
            batch.add_action(command, remote=config.remote)
        session.add_batch(batch)

        self.state = WorkflowState.INITIALIZED
        return session

    def prepare_next_batch(self, session: DebugSession, commands: List[str]) -> Batch:
        """Append a follow-up batch built from the recommended commands."""
        logger.info(f"Preparing next batch with commands: {commands}")
        remote = session.config.remote if session.config is not None else None
        batch = Batch(description=FOLLOW_UP_BATCH_DESCRIPTION)
        for command in commands:
            batch.add_action(command, remote=remote)
        return session.add_batch(batch)

    def _admit(self, session: DebugSession, batch: Batch) -> List[Action]:
        admitted = []
        for action in batch.pending_actions():
            if is_command_allowed(action.name, session.config):
                admitted.append(action)
            else:
                action.complete(rejection_reason(action.name, session.config))
        return admitted

    def _execute(self, executor: CommandExecutor, actions: List[Action]) -> None:
        if not actions:
            return
        try:
            executor.run_actions(actions)
        except Exception as e:
            logger.exception(f"Command execution failed for batch: {e}")
        for action in actions:
            if not action.is_completed():
                logger.warning(f"No result recorded for command: {action.name}")
                action.complete(format_result("", "no result was recorded for this command"))

    def run_batch(self, session: DebugSession, executor: CommandExecutor) -> Optional[CommandAnalysisResponse]:
        """
        Execute the current batch and record the model's analysis on it.

        Returns:
            The analysis response, or None when the analysis failed (the
            error is then recorded as the batch analysis with no next steps)
        """
        batch = session.last_batch()
        logger.info(f"Running batch: {batch.description}")
        self.state = WorkflowState.RUNNING

        self._execute(executor, self._admit(session, batch))

        prompt = get_command_analysis_prompt(session, include_analysis=True, include_outputs=True)
        try:
            response = analyze_commands(prompt, self.provider)
        except AnalysisError as e:
            batch.analysis = f"Error analyzing commands: {e}"
            batch.next_steps = []
            batch.completed = True
            return None

        batch.analysis = response.analysis
        batch.next_steps = [] if response.final else list(response.recommendations)
        batch.completed = True

        if response.final:
            logger.info(f"Final analysis completed for batch: {batch.description}")
            session.diagnosed = True
            session.end()
        else:
            logger.info(f"Batch {batch.description} analysis completed, but more steps are needed.")
        return response

    def _confirmed(self) -> bool:
        try:
            answer = self.confirm(CONFIRM_PROMPT)
        except EOFError:
            return False
        return (answer or "").strip().lower() in AFFIRMATIVE_ANSWERS

    def finalize(self, session: DebugSession) -> None:
        """Request the closing summary over every completed batch's analysis."""
        logger.info(f"Performing final analysis of the session log with ID: {session.id}")
        self.state = WorkflowState.FINALIZING
        try:
            summary = self.provider.request_completion(get_final_analysis_prompt(session))
        except CompletionError as e:
            logger.error(f"Error during final analysis: {e}")
            summary = f"Error during final analysis: {e}"
        logger.info(f"Final analysis response: {summary}")
        session.summary = summary
        if not session.end_time:
            session.end()

    def run(self, config) -> DebugSession:
        """
        Run a whole session.

        Stops after a final analysis, a batch without recommendations, a
        declined confirmation (interactive only, skips the summary) or
        config.max_batches batches, whichever comes first.
        """
        session = self.initialize(config)
        executor = self.executor or CommandExecutor.from_config(config)

        for index in range(config.max_batches):
            batch = session.last_batch()
            response = self.run_batch(session, executor)

            if config.interactive:
                self.output(present_batch(batch))

            if response is not None and response.final:
                break
            if not batch.next_steps:
                if config.interactive:
                    self.output("No next steps provided, ending debug session...")
                break
            if index + 1 >= config.max_batches:
                logger.info(f"Reached the limit of {config.max_batches} batches")
                break

            if config.interactive:
                self.state = WorkflowState.AWAITING_CONFIRMATION
                if not self._confirmed():
                    self.output("Ending debug session.")
                    session.end()
                    self.state = WorkflowState.TERMINATED
                    return session

            self.prepare_next_batch(session, batch.next_steps)

        self.finalize(session)
        self.state = WorkflowState.TERMINATED
        return session


def quick_check(commands: List[str], provider,
                executor: Optional[CommandExecutor] = None) -> Tuple[Dict[str, str], str]:
    """
    Run commands locally once and get a free-text analysis of their output.

    Returns:
        tuple: (results by command, analysis text)
    """
    executor = executor or CommandExecutor()
    results = executor.run_commands(commands)
    logger.debug(f"Command results: {results}")
    return results, summarize_command_outputs(results, provider)
