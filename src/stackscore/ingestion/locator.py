"""Parse a repository URL into an owner/name locator."""

from __future__ import annotations

import re
from urllib.parse import urlparse

from stackscore.constants import GITHUB_HOSTS
from stackscore.errors import InvalidRepository
from stackscore.ingestion.schemas import RepoLocator

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def parse_repo_url(repo_url: str) -> RepoLocator:
    """Return the locator for ``https://github.com/<owner>/<name>``.

    Also accepts a bare ``owner/name``, a trailing ``.git`` and extra
    path segments (``/tree/main/src``), which are ignored.
    """
    raw = (repo_url or "").strip()
    if not raw:
        raise InvalidRepository("Repository URL is empty")

    if "://" in raw:
        parsed = urlparse(raw)
        if parsed.scheme not in ("http", "https"):
            raise InvalidRepository(
                f"Unsupported URL scheme: {parsed.scheme}"
            )
        if (parsed.hostname or "").lower() not in GITHUB_HOSTS:
            raise InvalidRepository(
                f"Not a GitHub repository URL: {raw}"
            )
        path = parsed.path
    elif raw.lower().startswith(tuple(f"{h}/" for h in GITHUB_HOSTS)):
        path = raw.split("/", 1)[1]
    else:
        path = raw

    parts = [p for p in path.split("/") if p]
    if len(parts) < 2:
        raise InvalidRepository(
            f"Repository URL must contain owner and name: {raw}"
        )

    owner, name = parts[0], parts[1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not (_SEGMENT_RE.match(owner) and _SEGMENT_RE.match(name)):
        raise InvalidRepository(
            f"Invalid owner or repository name: {raw}"
        )
    if name in (".", ".."):
        raise InvalidRepository(f"Invalid repository name: {raw}")

    return RepoLocator(owner=owner, name=name)
