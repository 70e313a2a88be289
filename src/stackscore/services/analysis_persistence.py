"""Persist analysis record lifecycle transitions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from stackscore.analysis.review.schemas import FileInsight
from stackscore.analysis.tech_stack import TechStackProfile
from stackscore.constants import ERROR_TRUNCATION_CHARS
from stackscore.models.analysis import Analysis
from stackscore.repositories.analysis_repo import SqlAnalysisRepository
from stackscore.repositories.protocols import AnalysisRepository

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOutcome:
    """Final payload written when a run completes."""

    score: int
    summary: str
    suggestions: list[str] = field(default_factory=lambda: list[str]())
    profile: TechStackProfile = field(default_factory=TechStackProfile)
    insights: list[FileInsight] = field(
        default_factory=lambda: list[FileInsight]()
    )
    code_files_found: int = 0


class AnalysisPersistenceService:
    """Create, complete and fail analysis records.

    Each transition opens a dedicated short-lived session and commits
    before returning, so a pending record is visible to readers while
    the run is still working. Accepts an optional repo factory; the
    default builds a SqlAnalysisRepository. Tests can inject fakes.
    """

    def __init__(
        self,
        session_factory: Any,
        repo_factory: Callable[[Any], AnalysisRepository] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._repo_factory = repo_factory or SqlAnalysisRepository

    async def create_pending(self, owner_id: str, repo_url: str) -> Analysis:
        async with self._session_factory() as session:
            repo = self._repo_factory(session)
            analysis = await repo.create(
                Analysis(owner_id=owner_id, repo_url=repo_url)
            )
            await session.commit()
        logger.info(
            "event=analysis_created analysis_id=%s repo=%s",
            analysis.id,
            repo_url,
        )
        return analysis

    async def complete(
        self, analysis_id: str, outcome: AnalysisOutcome
    ) -> bool:
        """Write the completed payload. False if no longer pending."""
        async with self._session_factory() as session:
            repo = self._repo_factory(session)
            ok = await repo.try_complete(
                analysis_id,
                score=outcome.score,
                summary=outcome.summary,
                suggestions=outcome.suggestions,
                tech_stack=outcome.profile.to_dict(),
                file_insights=[i.to_dict() for i in outcome.insights],
                code_files_found=outcome.code_files_found,
            )
            await session.commit()
        if not ok:
            logger.warning(
                "event=complete_rejected analysis_id=%s", analysis_id
            )
        return ok

    async def fail(self, analysis_id: str, error: str) -> bool:
        async with self._session_factory() as session:
            repo = self._repo_factory(session)
            ok = await repo.try_fail(
                analysis_id, error[:ERROR_TRUNCATION_CHARS]
            )
            await session.commit()
        logger.info(
            "event=analysis_failed analysis_id=%s recorded=%s",
            analysis_id,
            ok,
        )
        return ok
