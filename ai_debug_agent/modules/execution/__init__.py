"""
Command Execution Module
Runs diagnostic commands locally or over SSH on a bounded worker pool
"""
from .executor import CommandExecutor, default_auth_resolver
from .local_runner import MAX_OUTPUT_LENGTH, TRUNCATION_MARKER, format_result, run_local_command

__all__ = [
    'CommandExecutor',
    'default_auth_resolver',
    'MAX_OUTPUT_LENGTH',
    'TRUNCATION_MARKER',
    'format_result',
    'run_local_command',
]
