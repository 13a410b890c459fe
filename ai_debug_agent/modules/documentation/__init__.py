"""
Documentation Module

Markdown and JSON reports of finished diagnostic sessions.
"""

from .report import ReportConfig, ReportFormat, generate_report

__all__ = [
    'ReportConfig',
    'ReportFormat',
    'generate_report'
]
