"""Startup recovery for records a crashed process left pending."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncConnection

from stackscore.constants import STALE_PENDING_ERROR, AnalysisStatus
from stackscore.models.analysis import Analysis


async def fail_stale_pending(
    conn: AsyncConnection, timeout_seconds: int
) -> int:
    """Mark pending records older than the timeout as failed.

    Returns the number of records recovered.
    """
    cutoff = datetime.now(UTC) - timedelta(seconds=timeout_seconds)
    result = await conn.execute(
        sa_update(Analysis)
        .where(
            Analysis.status == AnalysisStatus.PENDING,
            Analysis.updated_at < cutoff,
        )
        .values(status=AnalysisStatus.FAILED, error=STALE_PENDING_ERROR)
    )
    rowcount: int = getattr(result, "rowcount", 0) or 0
    return rowcount
