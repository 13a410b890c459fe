"""Core utilities for ai_debug_agent.
This package provides shared helpers (logging, config) used by every module.
"""
from .logger import configure, get_logger  # noqa: F401
from .config import (  # noqa: F401
    AppConfig,
    ConfigError,
    SessionConfig,
    load_config,
)
