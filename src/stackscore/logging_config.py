"""Process-wide logging for the API server and the CLI.

Configured in two steps around the litellm import:

1. ``setup_logging`` runs first. litellm reads ``LITELLM_LOG`` while it
   is being imported, so the variable must already be set.
2. ``cleanup_third_party_handlers`` runs once every module is loaded and
   drops the StreamHandlers litellm attaches to its own loggers.

Each step runs at most once per process.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Logger name -> lowest level it may emit
_QUIET_LEVELS: dict[str, int] = {
    "LiteLLM": logging.WARNING,
    "LiteLLM Router": logging.WARNING,
    "LiteLLM Proxy": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}

_LITELLM_LOGGERS = ("LiteLLM", "LiteLLM Router", "LiteLLM Proxy")

_done: set[str] = set()


def _first_call(step: str) -> bool:
    if step in _done:
        return False
    _done.add(step)
    return True


def resolve_level(level: str | None = None) -> int:
    """Map a level name to its number; unknown names mean INFO.

    Without an explicit name, ``LOG_LEVEL`` from the environment is
    used, the same variable ``Settings.log_level`` reads.
    """
    name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger. Call before litellm is imported."""
    if not _first_call("setup"):
        return

    os.environ.setdefault("LITELLM_LOG", "WARNING")

    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    for name, floor in _QUIET_LEVELS.items():
        logging.getLogger(name).setLevel(floor)


def cleanup_third_party_handlers() -> None:
    """Route litellm's loggers through root only, so lines print once."""
    if not _first_call("cleanup"):
        return

    for name in _LITELLM_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
