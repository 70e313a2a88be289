"""Pipeline orchestration: one repository analysis per call."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from stackscore.analysis.review.reviewer import review_code_files
from stackscore.analysis.review.schemas import ReviewSummary
from stackscore.analysis.scoring import (
    aggregate_score,
    build_summary,
    collect_suggestions,
)
from stackscore.analysis.tech_stack import TechStackProfile, run_manifest_pass
from stackscore.config import Settings
from stackscore.constants import (
    NO_FILES_SUGGESTION,
    NO_FILES_SUMMARY,
    SCORE_MIN,
    AnalysisStatus,
)
from stackscore.errors import AnalysisError
from stackscore.ingestion.classifier import classify_files
from stackscore.ingestion.github_client import GitHubClient
from stackscore.ingestion.locator import parse_repo_url
from stackscore.ingestion.schemas import ClassifiedFiles, RepoLocator
from stackscore.logger import RunLogger
from stackscore.services.analysis_persistence import (
    AnalysisOutcome,
    AnalysisPersistenceService,
)

logger = logging.getLogger(__name__)


@dataclass
class StageStatus:
    """Status of a pipeline stage."""

    name: str
    ok: bool
    duration_ms: float = 0.0
    error: str | None = None


@dataclass
class AnalysisResult:
    """Full result of a completed pipeline run."""

    analysis_id: str
    repo_name: str = ""
    outcome: AnalysisOutcome | None = None
    stages: list[StageStatus] = field(
        default_factory=lambda: list[StageStatus]()
    )
    total_duration_ms: float = 0.0

    def to_response(self) -> dict[str, Any]:
        """Inbound endpoint response body."""
        outcome = self.outcome or AnalysisOutcome(
            score=SCORE_MIN, summary=""
        )
        return {
            "success": True,
            "analysisId": self.analysis_id,
            "score": outcome.score,
            "filesAnalyzed": len(outcome.insights),
            "languages": len(outcome.profile.languages),
            "frameworks": len(outcome.profile.frameworks),
            "securityIssues": outcome.profile.security_issues_count,
        }


class _StageRunner:
    """Times stages, records their status and re-raises failures."""

    def __init__(
        self,
        analysis_id: str,
        result: AnalysisResult,
        run_logger: RunLogger | None,
    ) -> None:
        self._analysis_id = analysis_id
        self._result = result
        self._run_logger = run_logger

    async def run[T](self, name: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run an async stage; failures are recorded then re-raised."""
        t0 = time.monotonic()
        try:
            out = await fn()
        except Exception as exc:
            self._failed(name, t0, exc)
            raise
        self._record(
            StageStatus(name=name, ok=True, duration_ms=_elapsed(t0))
        )
        return out

    def run_sync[T](self, name: str, fn: Callable[[], T]) -> T:
        t0 = time.monotonic()
        try:
            out = fn()
        except Exception as exc:
            self._failed(name, t0, exc)
            raise
        self._record(
            StageStatus(name=name, ok=True, duration_ms=_elapsed(t0))
        )
        return out

    def _failed(self, name: str, t0: float, exc: Exception) -> None:
        self._record(
            StageStatus(
                name=name,
                ok=False,
                duration_ms=_elapsed(t0),
                error=str(exc),
            )
        )
        logger.warning(
            "event=stage_failed analysis_id=%s stage=%s error=%s",
            self._analysis_id,
            name,
            exc,
        )

    def _record(self, status: StageStatus) -> None:
        self._result.stages.append(status)
        if self._run_logger:
            self._run_logger.log_stage(
                self._analysis_id,
                status.name,
                status.ok,
                status.duration_ms,
                status.error,
            )


async def run_analysis(
    repo_url: str,
    owner_id: str,
    persistence: AnalysisPersistenceService,
    settings: Settings | None = None,
    github: GitHubClient | None = None,
    run_logger: RunLogger | None = None,
) -> AnalysisResult:
    """Run the full analysis pipeline for one repository.

    Phases:
      1. Create the pending record (before any network work)
      2. Parse locator, fetch metadata + recursive tree
      3. Classify files
      4. Manifest pass (sequential)
      5. Batched code review with code-content pass
      6. Aggregate score, summary, suggestions
      7. Persist completed record

    Any exception after phase 1 marks the record failed and is
    re-raised. Per-file and per-manifest failures never reach here.
    """
    cfg = settings or Settings()
    t0 = time.monotonic()

    record = await persistence.create_pending(owner_id, repo_url)
    analysis_id = record.id
    result = AnalysisResult(analysis_id=analysis_id)
    stages = _StageRunner(analysis_id, result, run_logger)

    client = github or GitHubClient(cfg)
    try:
        outcome = await _run_pipeline(
            repo_url, cfg, client, stages, result
        )
        completed = await stages.run(
            "persist", lambda: persistence.complete(analysis_id, outcome)
        )
        if not completed:
            raise AnalysisError(
                f"Analysis {analysis_id} is no longer pending"
            )
        result.outcome = outcome
    except Exception as exc:
        await _mark_failed(persistence, analysis_id, exc, run_logger)
        _log_run(result, repo_url, AnalysisStatus.FAILED, t0, run_logger)
        raise
    finally:
        if github is None:
            await client.aclose()

    _log_run(result, repo_url, AnalysisStatus.COMPLETED, t0, run_logger)
    return result


async def _run_pipeline(
    repo_url: str,
    cfg: Settings,
    client: GitHubClient,
    stages: _StageRunner,
    result: AnalysisResult,
) -> AnalysisOutcome:
    locator = stages.run_sync("parse_locator", lambda: parse_repo_url(repo_url))
    tree = await stages.run("fetch_tree", lambda: client.fetch_tree(locator))
    result.repo_name = tree.info.name
    files = stages.run_sync(
        "classify", lambda: classify_files(tree.entries, cfg)
    )
    fetch = _content_fetcher(client, locator, tree.info.default_branch)

    stack = await stages.run(
        "manifest_pass", lambda: run_manifest_pass(files.manifest, fetch)
    )
    if not files.code:
        logger.info(
            "event=no_code_files analysis_id=%s repo=%s",
            result.analysis_id,
            locator.slug,
        )
        return AnalysisOutcome(
            score=SCORE_MIN,
            summary=NO_FILES_SUMMARY,
            suggestions=[NO_FILES_SUGGESTION],
            profile=stack,
            code_files_found=0,
        )

    review = await stages.run(
        "review", lambda: review_code_files(files.code, fetch, cfg)
    )
    return _build_outcome(tree.info.name, files, stack, review)


def _build_outcome(
    repo_name: str,
    files: ClassifiedFiles,
    stack: TechStackProfile,
    review: ReviewSummary,
) -> AnalysisOutcome:
    profile = stack.merge(review.profile)
    insights = review.insights
    if not insights:
        logger.warning(
            "event=all_reviews_failed repo=%s code_files=%d",
            repo_name,
            len(files.code),
        )
    return AnalysisOutcome(
        score=aggregate_score(insights, profile),
        summary=build_summary(repo_name, insights, profile),
        suggestions=collect_suggestions(
            review.recommendations,
            review.quality_notes,
            review.security_notes,
        ),
        profile=profile,
        insights=insights,
        code_files_found=len(files.code),
    )


def _content_fetcher(
    client: GitHubClient, locator: RepoLocator, ref: str
) -> Callable[[str], Awaitable[str]]:
    async def fetch(path: str) -> str:
        return await client.fetch_content(locator, path, ref=ref)

    return fetch


async def _mark_failed(
    persistence: AnalysisPersistenceService,
    analysis_id: str,
    exc: Exception,
    run_logger: RunLogger | None,
) -> None:
    if run_logger:
        run_logger.log_error(analysis_id, "pipeline", str(exc))
    try:
        await persistence.fail(analysis_id, str(exc) or type(exc).__name__)
    except Exception:
        logger.exception(
            "event=fail_write_failed analysis_id=%s", analysis_id
        )


def _log_run(
    result: AnalysisResult,
    repo_url: str,
    status: AnalysisStatus,
    t0: float,
    run_logger: RunLogger | None,
) -> None:
    result.total_duration_ms = _elapsed(t0)
    score = result.outcome.score if result.outcome else None
    reviewed = len(result.outcome.insights) if result.outcome else 0
    logger.info(
        "event=analysis_done analysis_id=%s status=%s score=%s"
        " reviewed=%d duration_ms=%.0f",
        result.analysis_id,
        status,
        score,
        reviewed,
        result.total_duration_ms,
    )
    if run_logger:
        run_logger.log_run(
            result.analysis_id,
            repo_url,
            status,
            score,
            reviewed,
            result.total_duration_ms,
        )


def _elapsed(t0: float) -> float:
    return (time.monotonic() - t0) * 1000
