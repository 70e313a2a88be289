"""In-memory fake repositories for testing.

Dict-backed implementation of the repository protocol.
No SQLAlchemy session, no I/O: instant operations for unit tests.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from stackscore.constants import AnalysisStatus
from stackscore.models.analysis import Analysis


class FakeAnalysisRepository:
    """Dict-backed AnalysisRepository for testing."""

    def __init__(self) -> None:
        self._store: dict[str, Analysis] = {}

    async def create(self, analysis: Analysis) -> Analysis:
        if not analysis.id:
            analysis.id = str(uuid.uuid4())
        if analysis.status is None:
            analysis.status = AnalysisStatus.PENDING
        if analysis.suggestions is None:
            analysis.suggestions = []
        if analysis.tech_stack is None:
            analysis.tech_stack = {}
        if analysis.file_insights is None:
            analysis.file_insights = []
        if analysis.code_files_found is None:
            analysis.code_files_found = 0
        now = datetime.now(UTC)
        analysis.created_at = now
        analysis.updated_at = now
        self._store[analysis.id] = analysis
        return analysis

    async def get_by_id(
        self, analysis_id: str, owner_id: str | None = None
    ) -> Analysis | None:
        analysis = self._store.get(analysis_id)
        if analysis is None:
            return None
        if owner_id is not None and analysis.owner_id != owner_id:
            return None
        return analysis

    async def list_by_owner(
        self, owner_id: str, limit: int = 50
    ) -> list[Analysis]:
        owned = [a for a in self._store.values() if a.owner_id == owner_id]
        owned.sort(key=lambda a: a.created_at, reverse=True)
        return owned[:limit]

    async def try_complete(
        self,
        analysis_id: str,
        *,
        score: int,
        summary: str,
        suggestions: list[str],
        tech_stack: dict[str, Any],
        file_insights: list[dict[str, Any]],
        code_files_found: int,
    ) -> bool:
        """CAS: write only if the record is still pending."""
        analysis = self._store.get(analysis_id)
        if analysis is None or analysis.status != AnalysisStatus.PENDING:
            return False
        analysis.status = AnalysisStatus.COMPLETED
        analysis.score = score
        analysis.summary = summary
        analysis.suggestions = suggestions
        analysis.tech_stack = tech_stack
        analysis.file_insights = file_insights
        analysis.code_files_found = code_files_found
        analysis.error = None
        analysis.updated_at = datetime.now(UTC)
        return True

    async def try_fail(self, analysis_id: str, error: str) -> bool:
        analysis = self._store.get(analysis_id)
        if analysis is None or analysis.status != AnalysisStatus.PENDING:
            return False
        analysis.status = AnalysisStatus.FAILED
        analysis.score = None
        analysis.error = error
        analysis.updated_at = datetime.now(UTC)
        return True


class FakeSession:
    """Stands in for an AsyncSession where repos are fakes.

    The class itself is usable as a session factory.
    """

    def __init__(self) -> None:
        self.commits = 0

    async def __aenter__(self) -> FakeSession:
        return self

    async def __aexit__(self, *_exc: object) -> None:
        return None

    async def commit(self) -> None:
        self.commits += 1
