"""SQL implementation of AnalysisRepository."""

from typing import Any

from sqlalchemy import select
from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from stackscore.constants import AnalysisStatus
from stackscore.models.analysis import Analysis


class SqlAnalysisRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, analysis: Analysis) -> Analysis:
        self._session.add(analysis)
        await self._session.flush()
        return analysis

    async def get_by_id(
        self, analysis_id: str, owner_id: str | None = None
    ) -> Analysis | None:
        stmt = select(Analysis).where(Analysis.id == analysis_id)
        if owner_id is not None:
            stmt = stmt.where(Analysis.owner_id == owner_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_owner(
        self, owner_id: str, limit: int = 50
    ) -> list[Analysis]:
        result = await self._session.execute(
            select(Analysis)
            .where(Analysis.owner_id == owner_id)
            .order_by(Analysis.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

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
        """Write the final payload only if the record is still pending."""
        return await self._transition(
            analysis_id,
            status=AnalysisStatus.COMPLETED,
            score=score,
            summary=summary,
            suggestions=suggestions,
            tech_stack=tech_stack,
            file_insights=file_insights,
            code_files_found=code_files_found,
            error=None,
        )

    async def try_fail(self, analysis_id: str, error: str) -> bool:
        return await self._transition(
            analysis_id,
            status=AnalysisStatus.FAILED,
            score=None,
            error=error,
        )

    async def _transition(self, analysis_id: str, **values: Any) -> bool:
        result = await self._session.execute(
            sa_update(Analysis)
            .where(
                Analysis.id == analysis_id,
                Analysis.status == AnalysisStatus.PENDING,
            )
            .values(**values)
        )
        await self._session.flush()
        rowcount: int = getattr(result, "rowcount", 0) or 0
        return rowcount > 0
