"""Analysis error taxonomy and transport error classification.

Fatal errors abort the run and mark the record failed. Recoverable
errors are raised inside a single manifest or file task, logged, and
absorbed by the orchestrator.
"""

from __future__ import annotations

import asyncio
from enum import Enum

import httpx


class AnalysisError(Exception):
    """Base class for every error raised by the analysis pipeline."""


# ── Fatal ────────────────────────────────────────────────


class InvalidRepository(AnalysisError):
    """The repository identifier could not be parsed."""


class RepositoryUnavailable(AnalysisError):
    """Repository metadata could not be read (missing, private, limited)."""


class TreeUnavailable(AnalysisError):
    """The recursive file tree listing failed."""


# ── Recoverable (per manifest / per file) ────────────────


class RecoverableError(AnalysisError):
    """Raised inside one manifest or file task; never aborts a run."""


class ManifestUnreadable(RecoverableError):
    """A manifest's content could not be fetched."""


class ManifestUnparseable(RecoverableError):
    """A manifest's structured content is malformed."""


class FileFetchFailed(RecoverableError):
    """A file's content could not be fetched or decoded."""


class ReviewUnavailable(RecoverableError):
    """The reviewer call failed at the transport level."""


class ReviewInvalid(RecoverableError):
    """The reviewer never produced a valid response within the bound."""


# ── Classification ───────────────────────────────────────


class ErrorClass(Enum):
    TRANSIENT = "transient"  # 429, network errors
    SERVER = "server"  # 500, 502, 503
    TIMEOUT = "timeout"  # deadline exceeded
    CLIENT = "client"  # 400, 401, 403, 404
    UNKNOWN = "unknown"


def classify_error(error: BaseException) -> ErrorClass:
    """Classify a transport error for structured logging.

    Checks structured attributes first (status_code on litellm
    exceptions, response on httpx), falls back to string matching.
    """
    status_code = getattr(error, "status_code", None)
    if status_code is None and isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
    if isinstance(status_code, int):
        if status_code == 429:
            return ErrorClass.TRANSIENT
        if 400 <= status_code < 500:
            return ErrorClass.CLIENT
        if 500 <= status_code < 600:
            return ErrorClass.SERVER

    if isinstance(
        error, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)
    ):
        return ErrorClass.TIMEOUT
    if isinstance(error, httpx.TransportError):
        return ErrorClass.TRANSIENT

    msg = str(error).lower()
    if "timeout" in msg or "timed out" in msg:
        return ErrorClass.TIMEOUT
    if "429" in msg or "rate limit" in msg or "rate_limit" in msg:
        return ErrorClass.TRANSIENT
    if any(code in msg for code in ("500", "502", "503", "504")):
        return ErrorClass.SERVER
    if "econnrefused" in msg or "connection" in msg:
        return ErrorClass.TRANSIENT
    if any(code in msg for code in ("400", "401", "403", "404")):
        return ErrorClass.CLIENT

    return ErrorClass.UNKNOWN
