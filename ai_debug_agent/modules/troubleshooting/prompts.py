"""
Prompts for the Troubleshooting Module

Both prompts are pure functions of the session: the same session always
produces the same text.
"""
from ...utils.prompt_helpers import bullet_list, section_rule

MAX_RECOMMENDATIONS = 5


def _policy_rules(config) -> str:
    whitelist = list(getattr(config, "command_whitelist", ()) or ())
    blacklist = list(getattr(config, "command_blacklist", ()) or ())
    if whitelist:
        return "- Only suggest commands from the following whitelist:\n" + bullet_list(whitelist)
    if blacklist:
        return "- Only suggest commands that are NOT in the following blacklist:\n" + bullet_list(blacklist)
    return "- Only suggest commands that are safe and appropriate for the current debugging context.\n"


def _sudo_rule(config) -> str:
    if getattr(config, "use_sudo", False):
        return "- ALWAYS use 'sudo' in all commands.\n"
    return "- NEVER include 'sudo' in any command.\n"


def get_command_analysis_prompt(session, include_analysis: bool = True, include_outputs: bool = True) -> str:
    """
    Prompt asking the model to analyze the session so far and recommend next commands.

    Args:
        session: DebugSession with its config attached
        include_analysis: Include each batch's previous analysis
        include_outputs: Include each command's captured output
    """
    config = session.config
    parts = [
        "You are a Linux system assistant. Your task is to analyze system diagnostic data, "
        "summarize system health, identify notable issues, and recommend further actions if needed.\n\n",
        "Constraints:\n",
        "- Context Window: All recommendations, summaries, and command selections must consider "
        "that the LLM has a limited context window.\n",
        "- Be concise.\n",
        "- Do not repeat already provided information.\n",
        "- Avoid commands or outputs that produce excessive or redundant data.\n",
        "- Tailor recommendations to maximize useful insight with minimal output.\n\n",
        "Recommendations Rules:\n",
        _policy_rules(config),
        f"- Only suggest up to {MAX_RECOMMENDATIONS} shell commands per batch.\n",
        "- All commands must be read-only (do not alter system state).\n",
        "- No interactive commands (avoid prompts, user input, or commands that run in a loop; "
        "use, for example, 'top -n 1' instead of 'top').\n",
        _sudo_rule(config),
        "- Do not repeat any commands already included in the debugging history.\n",
        "- Each command should include a concise comment at the end explaining its purpose "
        "(e.g., ps aux # list processes).\n",
        "- Commands must be executable as-is in a shell, without extra context or input.\n",
        "- Only recommend commands when they add significant new diagnostic value.\n\n",
        "Stopping Criteria:\n",
        "- If you have identified the root cause with reasonable certainty, or have sufficient diagnostic evidence:\n",
        "- Clearly state this in your analysis.\n",
        "- Leave the recommendations array empty.\n",
        "- Set the \"final\" property to true.\n",
        "- Only continue recommending additional commands if further investigation is absolutely necessary.\n",
        "- If so, set \"final\" to false.\n\n",
        f"Problem description: {session.issue_description}\n\n",
        "Debugging history:\n",
    ]

    for batch in session.batches:
        parts.append(f"\tBatch: {batch.description}\n")
        parts.append("\tCommands:\n")
        for action in batch.actions:
            parts.append(f"\t\t{action.name}\n")
            if include_outputs:
                parts.append(f"\t\t\tOutput: {action.result}\n")
        if include_analysis and batch.analysis:
            parts.append(f"\tAnalysis: {batch.analysis}\n")
        parts.append(section_rule())

    return "".join(parts)


def get_final_analysis_prompt(session) -> str:
    """
    Prompt asking for the closing root-cause summary.

    Only completed batches contribute, in batch order.
    """
    parts = [
        "You are a Linux system assistant. A debugging session occurred during which several rounds "
        "of debugging commands were issued and the outputs analyzed. Based on those analyses, provide "
        "your final analysis of the system state, your theories about the root cause of the issue, "
        "and any recommended next steps.\n\n",
        f"Problem description: {session.issue_description}\n\n",
        "Debugging history:\n\n",
    ]
    for batch in session.completed_batches():
        parts.append(f"Batch description: {batch.description}\n")
        parts.append("Commands executed:\n")
        for action in batch.actions:
            parts.append(f"{action.name}\n")
        parts.append(f"Analysis: {batch.analysis}\n")
        parts.append("--------------------\n")
    return "".join(parts)


def get_quick_check_prompt(results: dict) -> str:
    """Prompt for a one-shot free-text analysis of command outputs, in command order."""
    return "".join(
        f"Command: {command}\nOutput:\n{output}\n\n" for command, output in results.items()
    )
