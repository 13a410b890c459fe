"""
Configuration for OpsMedic.

AppConfig holds process-wide settings resolved from built-in defaults, an
optional YAML file, a .env file and OPSMEDIC_* environment variables (in
that order of precedence, last wins). SessionConfig is the immutable policy
bundle handed to a single diagnostic workflow run.
"""
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "OPSMEDIC_"

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_SYSTEM_PROMPT = (
    "You are a Linux system assistant. Analyze the following system diagnostics "
    "and provide a clear, concise summary of system health, notable issues, "
    "and recommended actions."
)
DEFAULT_COMMAND_TIMEOUT = 15.0
DEFAULT_MAX_WORKERS = 8
DEFAULT_MAX_BATCHES = 5

DEFAULT_INITIAL_COMMANDS = (
    "top -b -n1 | head -20",
    "ps aux | head -10",
    "df -h",
    "free -h",
    "dmesg | tail -n 50",
)
QUICK_CHECK_COMMANDS = (
    "ps aux | head -10",
)

# YAML key -> AppConfig attribute
_YAML_KEYS = {
    "log_level": "log_level",
    "cmd_whitelist": "command_whitelist",
    "cmd_blacklist": "command_blacklist",
    "model": "model",
    "system_prompt": "system_prompt",
    "command_timeout": "command_timeout",
    "max_workers": "max_workers",
    "max_batches": "max_batches",
    "strict_host_key_checking": "strict_host_key_checking",
}


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be read or holds invalid values."""
    pass


@dataclass(frozen=True)
class SessionConfig:
    """Immutable policy bundle for one diagnostic workflow run."""
    issue_description: str = ""
    initial_commands: Tuple[str, ...] = ()
    remote: Optional[str] = None
    use_sudo: bool = False
    command_whitelist: Tuple[str, ...] = ()
    command_blacklist: Tuple[str, ...] = ()
    max_batches: int = DEFAULT_MAX_BATCHES
    max_workers: int = DEFAULT_MAX_WORKERS
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    strict_host_key_checking: bool = True
    interactive: bool = False

    def __post_init__(self):
        # Accept lists from callers but store tuples so the bundle stays immutable
        object.__setattr__(self, "initial_commands", tuple(self.initial_commands))
        object.__setattr__(self, "command_whitelist", tuple(self.command_whitelist))
        object.__setattr__(self, "command_blacklist", tuple(self.command_blacklist))
        if self.max_batches < 1:
            raise ValueError("max_batches must be >= 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.command_timeout <= 0:
            raise ValueError("command_timeout must be > 0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issue_description": self.issue_description,
            "initial_commands": list(self.initial_commands),
            "remote": self.remote,
            "use_sudo": self.use_sudo,
            "command_whitelist": list(self.command_whitelist),
            "command_blacklist": list(self.command_blacklist),
            "max_batches": self.max_batches,
            "max_workers": self.max_workers,
            "command_timeout": self.command_timeout,
            "strict_host_key_checking": self.strict_host_key_checking,
            "interactive": self.interactive,
        }


@dataclass
class AppConfig:
    log_level: str = "WARNING"
    command_whitelist: List[str] = field(default_factory=list)
    command_blacklist: List[str] = field(default_factory=list)
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    model: str = DEFAULT_MODEL
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    max_batches: int = DEFAULT_MAX_BATCHES
    strict_host_key_checking: bool = True

    def session_config(self,
                       issue_description: str,
                       initial_commands: Optional[List[str]] = None,
                       remote: Optional[str] = None,
                       use_sudo: bool = False,
                       interactive: bool = False,
                       **overrides) -> SessionConfig:
        """
        Build the per-run SessionConfig from these settings.

        Args:
            issue_description: Free text goal of the session
            initial_commands: First batch commands (defaults to DEFAULT_INITIAL_COMMANDS)
            remote: Optional user@host[:port] target
            use_sudo: Whether the model should prefix commands with sudo
            interactive: Ask for confirmation between batches
            **overrides: Any other SessionConfig field

        Returns:
            SessionConfig
        """
        values = {
            "issue_description": issue_description,
            "initial_commands": tuple(initial_commands or DEFAULT_INITIAL_COMMANDS),
            "remote": remote or None,
            "use_sudo": use_sudo,
            "command_whitelist": tuple(self.command_whitelist),
            "command_blacklist": tuple(self.command_blacklist),
            "max_batches": self.max_batches,
            "max_workers": self.max_workers,
            "command_timeout": self.command_timeout,
            "strict_host_key_checking": self.strict_host_key_checking,
            "interactive": interactive,
        }
        values.update(overrides)
        return SessionConfig(**values)


def _as_list(value: Any, key: str) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    raise ConfigError(f"{key} must be a list of strings")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _coerce(attr: str, value: Any) -> Any:
    try:
        if attr in ("command_whitelist", "command_blacklist"):
            return _as_list(value, attr)
        if attr == "command_timeout":
            return float(value)
        if attr in ("max_workers", "max_batches"):
            return int(value)
        if attr == "strict_host_key_checking":
            return _as_bool(value)
        if attr == "log_level":
            return str(value).strip().upper()
        return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {attr}: {value!r} ({e})")


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"failed to load user config {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse user config {path}: {e}")
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(f"user config {path} must contain a mapping")
    return document


def load_config(path: Optional[str] = None) -> AppConfig:
    """
    Resolve the application configuration.

    Args:
        path: Optional YAML configuration file merged over the defaults

    Returns:
        AppConfig
    """
    load_dotenv()
    config = AppConfig()

    if path:
        logger.info(f"Loading user configuration from {path}")
        for key, value in _read_yaml(Path(path).expanduser()).items():
            attr = _YAML_KEYS.get(key)
            if attr is None:
                logger.debug(f"Ignoring unknown config key '{key}'")
                continue
            setattr(config, attr, _coerce(attr, value))
    else:
        logger.info("No user configuration file provided, using defaults")

    for key, attr in _YAML_KEYS.items():
        env_value = os.getenv(ENV_PREFIX + key.upper())
        if env_value is not None:
            setattr(config, attr, _coerce(attr, env_value))

    config.openai_api_key = os.getenv("OPENAI_API_KEY", config.openai_api_key)
    config.openai_base_url = os.getenv("OPENAI_BASE_URL", config.openai_base_url)
    return config
