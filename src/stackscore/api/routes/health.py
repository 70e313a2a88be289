"""Health check endpoint."""

from datetime import UTC, datetime

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check for load balancers."""
    return {
        "status": "OK",
        "timestamp": datetime.now(UTC).isoformat(),
    }
