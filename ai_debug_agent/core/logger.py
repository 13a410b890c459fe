import logging
import sys

_DEF_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_configured = False


def resolve_level(level) -> int:
    """Map a level name or number to a logging level; unknown names map to ERROR."""
    if isinstance(level, int):
        return level
    return _LEVELS.get(str(level).strip().upper(), logging.ERROR)


def configure(level=logging.WARNING, force: bool = False) -> None:
    global _configured
    if _configured and not force:
        return
    logging.basicConfig(
        level=resolve_level(level),
        format=_DEF_FORMAT,
        datefmt=_DATE_FORMAT,
        stream=sys.stderr,
        force=force,
    )
    _configured = True
    logging.getLogger(__name__).debug(
        f"Logger initialized with level: {logging.getLevelName(resolve_level(level))}"
    )


def get_logger(name: str | None = None) -> logging.Logger:
    if not _configured:
        configure()
    return logging.getLogger(name or __name__)
