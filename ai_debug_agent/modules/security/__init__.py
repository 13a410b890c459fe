"""
Security Module

Command admission policy for diagnostic sessions.
"""

from .command_policy import is_command_allowed, matches_prefix, rejection_reason

__all__ = [
    'is_command_allowed',
    'matches_prefix',
    'rejection_reason'
]
