"""Tests for API routes using httpx AsyncClient."""

from __future__ import annotations

import hashlib
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from stackscore.constants import AnalysisStatus
from stackscore.main import app
from stackscore.models.analysis import Analysis
from stackscore.repositories.fakes import FakeAnalysisRepository
from tests.conftest import (
    VALID_REVIEW,
    github_handler,
    llm_result,
    make_github_client,
    setup_test_app,
)

_COMPLETION = "stackscore.analysis.review.reviewer.review_completion"
_FILES = {
    "src/app.py": "import os\nfrom x import y\n",
    "package.json": '{"dependencies": {"express": "^4"}}',
}
_ALICE = {"Authorization": "Bearer tok-alice"}
_BOB = {"Authorization": "Bearer tok-bob"}
_TOKENS = {"tok-alice": "alice", "tok-bob": "bob"}


@pytest.fixture
async def api(tmp_path: Path):
    """Client plus the fake repository behind it (no database)."""
    github = make_github_client(github_handler(_FILES))
    repo = setup_test_app(tmp_path, github, auth_tokens=_TOKENS)

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test"
    ) as c:
        yield c, repo

    app.dependency_overrides.clear()
    await github.aclose()


@pytest.fixture
def client(api: tuple[AsyncClient, FakeAnalysisRepository]) -> AsyncClient:
    return api[0]


@pytest.fixture
def repo(
    api: tuple[AsyncClient, FakeAnalysisRepository],
) -> FakeAnalysisRepository:
    return api[1]


class TestHealth:
    async def test_health_needs_no_auth(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "OK"
        assert "timestamp" in body


class TestAuth:
    async def test_missing_header(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/analyze-repository", json={"repoUrl": "acme/demo"}
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Authorization header missing"}

    async def test_wrong_scheme(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/analyses", headers={"Authorization": "Basic abc"}
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Malformed authorization header"}

    async def test_empty_bearer(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/analyses", headers={"Authorization": "Bearer "}
        )
        assert resp.status_code == 401

    async def test_unknown_token(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/analyses", headers={"Authorization": "Bearer nope"}
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid token"}

    async def test_preflight_skips_auth(self, client: AsyncClient) -> None:
        resp = await client.options(
            "/analyze-repository",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"


class TestAnalyzeRepository:
    async def test_success_shape(
        self, client: AsyncClient, repo: FakeAnalysisRepository
    ) -> None:
        mock = AsyncMock(return_value=llm_result(VALID_REVIEW))
        with patch(_COMPLETION, mock):
            resp = await client.post(
                "/analyze-repository",
                json={"repoUrl": "https://github.com/acme/demo"},
                headers=_ALICE,
            )
        assert resp.status_code == 200
        body = resp.json()
        assert body == {
            "success": True,
            "analysisId": body["analysisId"],
            "score": 8,
            "filesAnalyzed": 1,
            "languages": 1,
            "frameworks": 1,
            "securityIssues": 1,
        }
        record = await repo.get_by_id(body["analysisId"], owner_id="alice")
        assert record is not None
        assert record.status == AnalysisStatus.COMPLETED

    async def test_fatal_failure_is_500(
        self, client: AsyncClient, repo: FakeAnalysisRepository
    ) -> None:
        resp = await client.post(
            "/analyze-repository",
            json={"repoUrl": "https://gitlab.com/acme/demo"},
            headers=_ALICE,
        )
        assert resp.status_code == 500
        assert "Not a GitHub repository URL" in resp.json()["error"]

        records = await repo.list_by_owner("alice")
        assert [r.status for r in records] == [AnalysisStatus.FAILED]

    async def test_missing_body_is_422(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/analyze-repository", json={}, headers=_ALICE
        )
        assert resp.status_code == 422
        body = resp.json()
        assert "detail" not in body
        assert body["error"] == "repoUrl: Field required"

    async def test_empty_repo_url_is_422(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/analyze-repository", json={"repoUrl": ""}, headers=_ALICE
        )
        assert resp.status_code == 422
        assert resp.json()["error"].startswith("repoUrl: ")

    async def test_snake_case_body_accepted(
        self, client: AsyncClient
    ) -> None:
        mock = AsyncMock(return_value=llm_result(VALID_REVIEW))
        with patch(_COMPLETION, mock):
            resp = await client.post(
                "/analyze-repository",
                json={"repo_url": "acme/demo"},
                headers=_ALICE,
            )
        assert resp.status_code == 200


class TestAnalysisReads:
    async def _seed(
        self, repo: FakeAnalysisRepository, owner: str
    ) -> Analysis:
        return await repo.create(
            Analysis(owner_id=owner, repo_url="https://github.com/a/b")
        )

    async def test_list_scoped_to_caller(
        self, client: AsyncClient, repo: FakeAnalysisRepository
    ) -> None:
        mine = await self._seed(repo, "alice")
        await self._seed(repo, "bob")

        resp = await client.get("/analyses", headers=_ALICE)
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert [a["id"] for a in body["data"]] == [mine.id]

    async def test_get_own_record(
        self, client: AsyncClient, repo: FakeAnalysisRepository
    ) -> None:
        mine = await self._seed(repo, "alice")
        resp = await client.get(f"/analyses/{mine.id}", headers=_ALICE)
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "pending"

    async def test_other_owner_gets_404(
        self, client: AsyncClient, repo: FakeAnalysisRepository
    ) -> None:
        mine = await self._seed(repo, "alice")
        resp = await client.get(f"/analyses/{mine.id}", headers=_BOB)
        assert resp.status_code == 404
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Analysis not found"


class TestUnconfiguredTokens:
    async def test_owner_is_token_digest(self, tmp_path: Path) -> None:
        github = make_github_client(github_handler(_FILES))
        repo = setup_test_app(tmp_path, github)
        owner = hashlib.sha256(b"any-token").hexdigest()[:32]
        seeded = await repo.create(
            Analysis(owner_id=owner, repo_url="https://github.com/a/b")
        )
        try:
            transport = ASGITransport(app=app)
            async with AsyncClient(
                transport=transport, base_url="http://test"
            ) as c:
                resp = await c.get(
                    "/analyses",
                    headers={"Authorization": "Bearer any-token"},
                )
        finally:
            app.dependency_overrides.clear()
            await github.aclose()
        assert [a["id"] for a in resp.json()["data"]] == [seeded.id]
