"""
Shared helpers: completion provider, OpenAI client factory and prompt fragments.
"""
from .ai_call import CompletionError, CompletionProvider, OpenAIProvider  # noqa: F401
from .ai_client import MissingCredentialsError, get_openai_client  # noqa: F401
