"""Protocol-based repository interfaces.

SQL implementations satisfy these protocols structurally (no inheritance).
Test doubles can be plain classes or mocks matching the same signature.
"""

from typing import Any, Protocol

from stackscore.models.analysis import Analysis


class AnalysisRepository(Protocol):
    async def create(self, analysis: Analysis) -> Analysis: ...
    async def get_by_id(
        self, analysis_id: str, owner_id: str | None = None
    ) -> Analysis | None: ...
    async def list_by_owner(
        self, owner_id: str, limit: int = 50
    ) -> list[Analysis]: ...
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
    ) -> bool: ...
    async def try_fail(self, analysis_id: str, error: str) -> bool: ...
