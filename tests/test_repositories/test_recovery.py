"""Tests for failing analyses a crashed process left pending."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from stackscore.constants import STALE_PENDING_ERROR, AnalysisStatus
from stackscore.models.analysis import Analysis
from stackscore.repositories.recovery import fail_stale_pending


async def test_recovery_fails_only_stale_pending(
    engine: AsyncEngine,
) -> None:
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    old = datetime.now(UTC) - timedelta(seconds=1200)
    async with session_factory() as session:
        session.add_all(
            [
                Analysis(
                    id="stale",
                    owner_id="alice",
                    repo_url="https://github.com/a/b",
                    updated_at=old,
                ),
                Analysis(
                    id="fresh",
                    owner_id="alice",
                    repo_url="https://github.com/a/c",
                ),
                Analysis(
                    id="done",
                    owner_id="alice",
                    repo_url="https://github.com/a/d",
                    status=AnalysisStatus.COMPLETED,
                    score=7,
                    updated_at=old,
                ),
            ]
        )
        await session.commit()

    async with engine.begin() as conn:
        recovered = await fail_stale_pending(conn, timeout_seconds=900)
    assert recovered == 1

    async with session_factory() as session:
        rows = await session.execute(select(Analysis))
        by_id = {a.id: a for a in rows.scalars()}
    assert by_id["stale"].status == AnalysisStatus.FAILED
    assert by_id["stale"].error == STALE_PENDING_ERROR
    assert by_id["fresh"].status == AnalysisStatus.PENDING
    assert by_id["done"].status == AnalysisStatus.COMPLETED
    assert by_id["done"].score == 7


async def test_recovery_noop_on_empty_table(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        assert await fail_stale_pending(conn, timeout_seconds=900) == 0
