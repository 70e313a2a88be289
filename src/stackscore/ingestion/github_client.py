"""Read-only GitHub REST client: metadata, recursive tree, file content."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any
from urllib.parse import quote

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from stackscore.config import Settings
from stackscore.constants import (
    GITHUB_API_VERSION,
    TRANSPORT_RETRY_ATTEMPTS,
    TRANSPORT_RETRY_INITIAL_WAIT,
    TRANSPORT_RETRY_MAX_WAIT,
)
from stackscore.errors import (
    FileFetchFailed,
    RepositoryUnavailable,
    TreeUnavailable,
    classify_error,
)
from stackscore.ingestion.schemas import (
    RepoInfo,
    RepoLocator,
    RepoTree,
    TreeEntry,
)

logger = logging.getLogger(__name__)

# Connection-level failures only; a received non-2xx is never retried.
_transport_retry = retry(
    stop=stop_after_attempt(TRANSPORT_RETRY_ATTEMPTS),
    wait=wait_exponential_jitter(
        initial=TRANSPORT_RETRY_INITIAL_WAIT,
        max=TRANSPORT_RETRY_MAX_WAIT,
    ),
    retry=retry_if_exception_type(httpx.TransportError),
    reraise=True,
)


def _json_body(response: httpx.Response) -> Any:
    """Decoded JSON body; None when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        return None


class GitHubClient:
    """Fetches repository metadata, tree listings and file content.

    Owns its ``httpx.AsyncClient`` unless one is injected. Use as an
    async context manager, or call :meth:`aclose` when done.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.github_api_url,
            timeout=self._settings.github_timeout_seconds,
            headers=self._headers(),
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if self._settings.github_token:
            headers["Authorization"] = (
                f"Bearer {self._settings.github_token}"
            )
        return headers

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @_transport_retry
    async def _get(
        self, path: str, params: dict[str, str] | None = None
    ) -> httpx.Response:
        return await self._client.get(path, params=params)

    # ── TreeFetcher ──────────────────────────────────────

    async def get_repository(self, locator: RepoLocator) -> RepoInfo:
        """Resolve repository name and default branch."""
        try:
            response = await self._get(f"/repos/{locator.slug}")
        except httpx.HTTPError as exc:
            raise RepositoryUnavailable(
                f"Repository not accessible: {locator.slug}"
                f" ({classify_error(exc).value})"
            ) from exc
        if response.status_code != 200:
            raise RepositoryUnavailable(
                "Repository not found or not accessible:"
                f" {response.status_code}"
            )
        data: Any = _json_body(response)
        if not isinstance(data, dict):
            raise RepositoryUnavailable(
                "Repository metadata is not a JSON object"
            )
        return RepoInfo(
            name=str(data.get("name") or locator.name),
            default_branch=str(data.get("default_branch") or "main"),
        )

    async def get_tree(
        self, locator: RepoLocator, branch: str
    ) -> list[TreeEntry]:
        """Return the raw recursive tree listing, unfiltered."""
        try:
            response = await self._get(
                f"/repos/{locator.slug}/git/trees/{quote(branch, safe='')}",
                params={"recursive": "1"},
            )
        except httpx.HTTPError as exc:
            raise TreeUnavailable(
                f"Failed to fetch file tree: {classify_error(exc).value}"
            ) from exc
        if response.status_code != 200:
            raise TreeUnavailable(
                f"Failed to fetch file tree: {response.status_code}"
            )
        data: Any = _json_body(response)
        tree: Any = data.get("tree", []) if isinstance(data, dict) else None
        if not isinstance(tree, list):
            raise TreeUnavailable(
                "Failed to fetch file tree: malformed response body"
            )
        if data.get("truncated"):
            logger.warning(
                "event=tree_truncated repo=%s", locator.slug
            )
        return [
            TreeEntry(
                path=str(item["path"]),
                type=str(item.get("type", "")),
                size=int(item.get("size") or 0),
            )
            for item in tree
            if isinstance(item, dict) and "path" in item
        ]

    async def fetch_tree(self, locator: RepoLocator) -> RepoTree:
        """Metadata then tree, the two mandatory host calls."""
        info = await self.get_repository(locator)
        entries = await self.get_tree(locator, info.default_branch)
        logger.info(
            "event=tree_fetched repo=%s branch=%s entries=%d",
            locator.slug,
            info.default_branch,
            len(entries),
        )
        return RepoTree(info=info, entries=entries)

    # ── ContentFetcher ───────────────────────────────────

    async def fetch_content(
        self,
        locator: RepoLocator,
        path: str,
        ref: str | None = None,
    ) -> str:
        """Return decoded UTF-8 text for ``path``; "" if it has none.

        Raises FileFetchFailed on any non-2xx response, transport
        error, or undecodable payload.
        """
        params = {"ref": ref} if ref else None
        try:
            response = await self._get(
                f"/repos/{locator.slug}/contents/{quote(path)}",
                params=params,
            )
        except httpx.HTTPError as exc:
            raise FileFetchFailed(
                f"{path}: {classify_error(exc).value}"
            ) from exc
        if response.status_code != 200:
            raise FileFetchFailed(
                f"{path}: status {response.status_code}"
            )

        data: Any = _json_body(response)
        if data is None:
            raise FileFetchFailed(f"{path}: response body is not JSON")
        if not isinstance(data, dict):
            # Directory listing, not a file
            raise FileFetchFailed(f"{path}: not a file")
        content = data.get("content")
        if not content:
            return ""
        if data.get("encoding", "base64") != "base64":
            return str(content)
        try:
            raw = base64.b64decode(content)
        except (binascii.Error, TypeError, ValueError) as exc:
            raise FileFetchFailed(
                f"{path}: invalid base64 payload"
            ) from exc
        return raw.decode("utf-8", errors="replace")
