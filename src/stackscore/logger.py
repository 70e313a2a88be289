"""Structured JSON logger for per-analysis stage tracking."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from stackscore.constants import ERROR_TRUNCATION_CHARS
from stackscore.logging_config import resolve_level

__all__ = ["RunLogger"]


class RunLogger:
    """Appends one JSON line per stage/error, correlated by analysis id."""

    def __init__(self, log_dir: Path, level: str = "INFO") -> None:
        self._log_dir = log_dir
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._logger = logging.getLogger("stackscore.runs")
        self._logger.setLevel(resolve_level(level))

        if not self._logger.handlers:
            handler = logging.FileHandler(log_dir / "analysis.log")
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)

    def log_stage(
        self,
        analysis_id: str,
        stage_name: str,
        ok: bool,
        duration_ms: float,
        error: str | None = None,
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": "stage",
                "timestamp": datetime.now(UTC).isoformat(),
                "analysis_id": analysis_id,
                "stage": stage_name,
                "status": "done" if ok else "error",
                "duration_ms": round(duration_ms, 1),
                "error": error,
            })
        )

    def log_run(
        self,
        analysis_id: str,
        repo_url: str,
        status: str,
        score: int | None,
        files_reviewed: int,
        duration_ms: float,
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": "run",
                "timestamp": datetime.now(UTC).isoformat(),
                "analysis_id": analysis_id,
                "repo_url": repo_url,
                "status": status,
                "score": score,
                "files_reviewed": files_reviewed,
                "duration_ms": round(duration_ms, 1),
            })
        )

    def log_error(
        self,
        analysis_id: str,
        component: str,
        error: str,
    ) -> None:
        self._logger.error(
            json.dumps({
                "type": "error",
                "timestamp": datetime.now(UTC).isoformat(),
                "analysis_id": analysis_id,
                "component": component,
                "error": error[:ERROR_TRUNCATION_CHARS],
            })
        )
