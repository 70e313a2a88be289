"""Environment-based configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from stackscore.constants import (
    MAX_FILE_SIZE_BYTES,
    REVIEW_BATCH_SIZE,
    REVIEW_CONTENT_CHARS,
    REVIEW_MAX_ATTEMPTS,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # Repository host
    github_api_url: str = "https://api.github.com"
    github_token: str = ""
    github_timeout_seconds: float = 30.0

    # Reviewer (litellm provider/model id)
    reviewer_model: str = "groq/llama-3.1-8b-instant"
    reviewer_api_key: str = ""
    reviewer_temperature: float = 0.1
    reviewer_max_tokens: int = 800
    reviewer_timeout_seconds: int = 60

    # Review loop
    review_batch_size: int = REVIEW_BATCH_SIZE
    review_max_attempts: int = REVIEW_MAX_ATTEMPTS
    review_content_chars: int = REVIEW_CONTENT_CHARS
    review_strict_order: bool = False

    # Classification
    max_file_size_bytes: int = MAX_FILE_SIZE_BYTES
    skip_directories: Annotated[list[str], NoDecode] = [
        "vendor",
        ".venv",
        "__pycache__",
        "target",
        ".svn",
        ".hg",
        ".next",
    ]

    # Database
    database_url: str = "sqlite:///data/stackscore.db"
    # Pending records older than this are failed on startup
    analysis_timeout_seconds: int = 900

    # Directories
    log_dir: Path = Path("logs")

    # Logging
    log_level: str = "INFO"
    debug_mode: bool = False

    # API
    auth_tokens: Annotated[dict[str, str], NoDecode] = {}

    @field_validator("skip_directories", mode="before")
    @classmethod
    def _parse_dirs(cls, v: Any) -> Any:
        """Accept comma-separated string or JSON array."""
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("auth_tokens", mode="before")
    @classmethod
    def _parse_tokens(cls, v: Any) -> Any:
        """Accept ``token=owner`` pairs separated by commas."""
        if not isinstance(v, str):
            return v
        pairs: dict[str, str] = {}
        for item in v.split(","):
            token, sep, owner = item.strip().partition("=")
            if not sep or not token or not owner:
                if item.strip():
                    logger.warning(
                        "event=auth_token_malformed entry_len=%d",
                        len(item.strip()),
                    )
                continue
            pairs[token.strip()] = owner.strip()
        return pairs

    @field_validator(
        "review_batch_size",
        "review_max_attempts",
        "review_content_chars",
        "max_file_size_bytes",
    )
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }


def create_app_engine(
    url: str, *, echo: bool = False
) -> AsyncEngine:
    """Create async SQLite engine with WAL journal mode.

    Handles URL conversion (sqlite:/// → sqlite+aiosqlite:///)
    and sets WAL mode via a pool-connect event listener so it
    fires once per raw DBAPI connection, not per ORM session.
    """
    if url.startswith("sqlite:///"):
        db_path = url[len("sqlite:///"):]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        db_url = "sqlite+aiosqlite:///" + db_path
    else:
        db_url = url
    engine = create_async_engine(db_url, echo=echo)

    if db_url.startswith("sqlite"):

        @event.listens_for(engine.sync_engine, "connect")
        def _set_wal_mode(
            dbapi_conn: object,
            _connection_record: object,
        ) -> None:
            cursor = dbapi_conn.cursor()  # type: ignore[union-attr]
            cursor.execute("PRAGMA journal_mode=WAL")  # pyright: ignore[reportUnknownMemberType]
            cursor.close()  # pyright: ignore[reportUnknownMemberType]

    return engine
