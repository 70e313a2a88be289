"""FastAPI dependency injection for persistence and the repository host."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Request

from stackscore.config import Settings
from stackscore.ingestion.github_client import GitHubClient
from stackscore.logger import RunLogger
from stackscore.repositories.analysis_repo import SqlAnalysisRepository
from stackscore.repositories.protocols import AnalysisRepository
from stackscore.services.analysis_persistence import (
    AnalysisPersistenceService,
)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_run_logger(request: Request) -> RunLogger | None:
    return getattr(request.app.state, "run_logger", None)


def get_owner_id(request: Request) -> str:
    """Owner id resolved by BearerAuthMiddleware."""
    return request.state.owner_id


async def get_analysis_repo(
    request: Request,
) -> AsyncIterator[AnalysisRepository]:
    """Generator dep: session lives for entire request."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield SqlAnalysisRepository(session)


def get_persistence(request: Request) -> AnalysisPersistenceService:
    """Each lifecycle write opens and commits its own session."""
    return AnalysisPersistenceService(request.app.state.session_factory)


async def get_github_client(
    request: Request,
) -> AsyncIterator[GitHubClient]:
    async with GitHubClient(request.app.state.settings) as client:
        yield client
