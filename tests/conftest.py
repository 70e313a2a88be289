"""Shared test fixtures: in-memory SQLite, fake persistence, fake GitHub."""

import os

# Force a demo reviewer key for all tests; no real LLM calls.
# Set unconditionally at import time, so real keys in your shell
# environment are overwritten before any Settings() is created.
os.environ["REVIEWER_API_KEY"] = "for-demo-purposes-only"
os.environ["GITHUB_TOKEN"] = ""
os.environ["AUTH_TOKENS"] = ""

import base64
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
)

from stackscore.analysis.llm import LLMCallResult
from stackscore.api.dependencies import (
    get_analysis_repo,
    get_github_client,
    get_persistence,
)
from stackscore.config import Settings
from stackscore.ingestion.github_client import GitHubClient
from stackscore.logger import RunLogger
from stackscore.main import app
from stackscore.models.base import Base
from stackscore.repositories.fakes import FakeAnalysisRepository, FakeSession
from stackscore.services.analysis_persistence import (
    AnalysisPersistenceService,
)

VALID_REVIEW = """\
SCORE: 8

FILE PURPOSE: Entry point wiring the application together.

CODE QUALITY REVIEW:
Structure and Organization: Clear module layout.
Naming Conventions: Consistent.

ARCHITECTURE ANALYSIS:
Design Patterns Used: Factory functions.

SECURITY REVIEW:
Input Validation: Request bodies are not validated.

TECHNICAL DEBT ASSESSMENT:
Code Smells Identified: None significant.
Maintainability Score: High.

TOP 5 ACTIONABLE RECOMMENDATIONS:
1. Validate request bodies.
2. Add type hints.
3. Split the router module.
4. Add integration tests.
5. Document configuration."""


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the developer's .env file."""
    values: dict[str, Any] = {
        "database_url": "sqlite:///:memory:",
        "github_api_url": "https://api.github.test",
        "reviewer_model": "groq/test-model",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


def llm_result(content: str) -> LLMCallResult:
    return LLMCallResult(
        content=content,
        model="groq/test-model",
        input_tokens=10,
        output_tokens=20,
    )


def encode_content(text: str) -> dict[str, Any]:
    """GitHub contents API payload for ``text``."""
    return {
        "type": "file",
        "encoding": "base64",
        "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
    }


def github_handler(
    files: dict[str, str],
    *,
    repo_name: str = "demo",
    branch: str = "main",
    sizes: dict[str, int] | None = None,
    repo_status: int = 200,
    tree_status: int = 200,
    missing: frozenset[str] = frozenset(),
) -> Callable[[httpx.Request], httpx.Response]:
    """Build an httpx.MockTransport handler serving one repository.

    ``files`` maps path → content. Paths in ``missing`` appear in the
    tree but their contents call returns 404.
    """
    sizes = sizes or {}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        base = f"/repos/acme/{repo_name}"
        if path == base:
            if repo_status != 200:
                return httpx.Response(repo_status, json={"message": "x"})
            return httpx.Response(
                200, json={"name": repo_name, "default_branch": branch}
            )
        if path == f"{base}/git/trees/{branch}":
            if tree_status != 200:
                return httpx.Response(tree_status, json={"message": "x"})
            tree = [
                {
                    "path": p,
                    "type": "blob",
                    "size": sizes.get(p, len(c.encode("utf-8"))),
                }
                for p, c in files.items()
            ]
            return httpx.Response(
                200, json={"tree": tree, "truncated": False}
            )
        prefix = f"{base}/contents/"
        if path.startswith(prefix):
            file_path = path[len(prefix):]
            if file_path in missing or file_path not in files:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json=encode_content(files[file_path]))
        return httpx.Response(404, content=json.dumps({}).encode())

    return handler


def make_github_client(
    handler: Callable[[httpx.Request], httpx.Response],
    settings: Settings | None = None,
) -> GitHubClient:
    cfg = settings or make_settings()
    http = httpx.AsyncClient(
        base_url=cfg.github_api_url,
        transport=httpx.MockTransport(handler),
    )
    return GitHubClient(cfg, client=http)


def make_persistence(
    repo: FakeAnalysisRepository,
) -> AnalysisPersistenceService:
    return AnalysisPersistenceService(
        FakeSession, repo_factory=lambda _session: repo
    )


def setup_test_app(
    tmp_path: Path,
    github: GitHubClient,
    *,
    auth_tokens: dict[str, str] | None = None,
) -> FakeAnalysisRepository:
    """Common app-state setup for API test fixtures.

    Sets up settings, run logger, a fake repository shared by the
    persistence writer and the read routes, and the GitHub client.
    Returns the fake repository so tests can seed and inspect it.
    """
    fake_repo = FakeAnalysisRepository()

    app.state.settings = make_settings(auth_tokens=auth_tokens or {})
    app.state.run_logger = RunLogger(
        log_dir=Path(tmp_path / "logs"), level="WARNING"
    )

    app.dependency_overrides[get_persistence] = lambda: make_persistence(
        fake_repo
    )
    app.dependency_overrides[get_analysis_repo] = lambda: fake_repo
    app.dependency_overrides[get_github_client] = lambda: github

    return fake_repo


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    """Function-scoped session with connection-level rollback.

    Wraps each test in a connection-level transaction so that
    even ``session.commit()`` calls inside tests are rolled
    back at teardown, keeping the shared engine clean.
    """
    async with engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(
            bind=connection, expire_on_commit=False
        )
        yield session
        await session.close()
        await transaction.rollback()
