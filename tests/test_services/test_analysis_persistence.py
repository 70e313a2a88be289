"""Tests for record lifecycle writes against a real SQLite database."""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from stackscore.analysis.review.schemas import FileInsight
from stackscore.analysis.tech_stack import TechStackProfile
from stackscore.constants import AnalysisStatus
from stackscore.repositories.analysis_repo import SqlAnalysisRepository
from stackscore.services.analysis_persistence import (
    AnalysisOutcome,
    AnalysisPersistenceService,
)


def _service(engine: AsyncEngine) -> AnalysisPersistenceService:
    return AnalysisPersistenceService(
        async_sessionmaker(engine, expire_on_commit=False)
    )


async def _load(engine: AsyncEngine, analysis_id: str):
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        return await SqlAnalysisRepository(session).get_by_id(analysis_id)


async def test_pending_visible_to_other_sessions(engine: AsyncEngine) -> None:
    service = _service(engine)
    created = await service.create_pending("alice", "https://github.com/a/b")

    loaded = await _load(engine, created.id)
    assert loaded is not None
    assert loaded.status == AnalysisStatus.PENDING
    assert loaded.owner_id == "alice"


async def test_complete_persists_payload(engine: AsyncEngine) -> None:
    service = _service(engine)
    created = await service.create_pending("alice", "https://github.com/a/b")
    outcome = AnalysisOutcome(
        score=8,
        summary="Comprehensive analysis of b",
        suggestions=["a.py: 1. Add tests."],
        profile=TechStackProfile(
            languages={"py": 1}, frameworks=frozenset({"FastAPI"})
        ),
        insights=[
            FileInsight(
                file="a.py",
                analysis="SCORE: 8",
                score=8,
                size=40,
                extension="py",
            )
        ],
        code_files_found=1,
    )

    assert await service.complete(created.id, outcome) is True
    assert await service.complete(created.id, outcome) is False

    loaded = await _load(engine, created.id)
    assert loaded.status == AnalysisStatus.COMPLETED
    assert loaded.score == 8
    assert loaded.tech_stack["frameworks"] == ["FastAPI"]
    assert loaded.tech_stack["languages"] == {"py": 1}
    assert loaded.file_insights[0]["file"] == "a.py"
    assert loaded.code_files_found == 1


async def test_fail_truncates_error(engine: AsyncEngine) -> None:
    service = _service(engine)
    created = await service.create_pending("alice", "https://github.com/a/b")

    assert await service.fail(created.id, "x" * 500) is True

    loaded = await _load(engine, created.id)
    assert loaded.status == AnalysisStatus.FAILED
    assert loaded.score is None
    assert loaded.error == "x" * 200
