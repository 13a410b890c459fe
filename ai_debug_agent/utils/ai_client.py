"""
OpenAI client factory.

Provides get_openai_client() which returns a configured OpenAI client
instance. Callers own the returned client; nothing is cached at module level.
"""
import os
from typing import Optional

from openai import OpenAI


class MissingCredentialsError(RuntimeError):
    """Raised when no API key is available for the completion service."""
    pass


def get_openai_client(api_key: Optional[str] = None, base_url: Optional[str] = None) -> OpenAI:
    """Return a configured OpenAI client instance.

    Environment variables used when arguments are omitted:
      OPENAI_API_KEY - API key
      OPENAI_BASE_URL - optional base URL for a compatible endpoint
    """
    api_key = api_key or os.environ.get("OPENAI_API_KEY")
    base_url = base_url or os.environ.get("OPENAI_BASE_URL")
    if not api_key:
        raise MissingCredentialsError("OPENAI_API_KEY is not set")

    kwargs = {"api_key": api_key}
    if base_url:
        kwargs["base_url"] = base_url
    return OpenAI(**kwargs)
