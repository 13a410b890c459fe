"""
Troubleshooting Module
Iterative, model-guided diagnosis of a local or remote host
"""
from .ai_handler import AnalysisError, CommandAnalysisResponse, analyze_commands, summarize_command_outputs
from .prompts import MAX_RECOMMENDATIONS, get_command_analysis_prompt, get_final_analysis_prompt
from .workflow_engine import DebugWorkflow, WorkflowConfigError, WorkflowState, present_batch, quick_check

__all__ = [
    'AnalysisError',
    'CommandAnalysisResponse',
    'analyze_commands',
    'summarize_command_outputs',
    'MAX_RECOMMENDATIONS',
    'get_command_analysis_prompt',
    'get_final_analysis_prompt',
    'DebugWorkflow',
    'WorkflowConfigError',
    'WorkflowState',
    'present_batch',
    'quick_check',
]
