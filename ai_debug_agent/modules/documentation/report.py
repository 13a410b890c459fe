"""
Session Report Generator

Renders a finished DebugSession as Markdown or JSON for sharing.
"""

import json
from dataclasses import dataclass
from enum import Enum


class ReportFormat(Enum):
    """Supported report formats"""
    MARKDOWN = "markdown"
    JSON = "json"


@dataclass
class ReportConfig:
    format: ReportFormat = ReportFormat.MARKDOWN
    include_command_output: bool = False
    include_analysis_history: bool = True


def generate_report(session, config: ReportConfig = None) -> str:
    """Format a session in the configured report format"""
    config = config or ReportConfig()
    if config.format == ReportFormat.MARKDOWN:
        return _format_as_markdown(session, config)
    elif config.format == ReportFormat.JSON:
        return json.dumps(session.to_dict(), indent=2)
    else:
        raise ValueError(f"Unsupported format: {config.format}")


def _format_as_markdown(session, config: ReportConfig) -> str:
    md = "# Debug Session Report\n\n"
    md += f"**Session ID**: {session.id}\n\n"
    md += f"**Issue**: {session.issue_description}\n\n"
    md += f"**Started**: {session.start_time or 'n/a'}\n\n"
    md += f"**Ended**: {session.end_time or 'n/a'}\n\n"
    md += f"**Diagnosed**: {'yes' if session.diagnosed else 'no'}\n\n"

    md += "## Summary\n\n"
    md += f"{session.summary or '_No summary was produced._'}\n\n"

    md += "## Batches\n\n"
    for number, batch in enumerate(session.batches, 1):
        md += f"### {number}. {batch.description}\n\n"
        for action in batch.actions:
            target = f" (on {action.remote})" if action.remote else ""
            md += f"- `{action.name}`{target} [{action.status.value}]\n"
            if config.include_command_output:
                md += f"\n```\n{action.result.rstrip()}\n```\n\n"
        md += "\n"

        if config.include_analysis_history and batch.analysis:
            md += f"**Analysis**:\n\n{batch.analysis}\n\n"
        if config.include_analysis_history and batch.next_steps:
            md += "**Next Steps**:\n"
            for command in batch.next_steps:
                md += f"- `{command}`\n"
            md += "\n"

    md += "---\n"
    md += f"*Generated by OpsMedic for session {session.id}*\n"
    return md
