"""Technology-stack inference from manifests and code content.

Detection never mutates a shared object: each call returns a fresh
:class:`TechStackProfile`, and callers combine them with
:meth:`TechStackProfile.merge` after their tasks have joined.
"""

from __future__ import annotations

import json
import logging
import tomllib
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from stackscore.analysis.signatures import (
    CODE_SIGNATURES,
    MANIFEST_ECOSYSTEMS,
    signatures_for,
)
from stackscore.constants import TagCategory
from stackscore.errors import (
    FileFetchFailed,
    ManifestUnparseable,
    ManifestUnreadable,
)
from stackscore.ingestion.schemas import FileCandidate

logger = logging.getLogger(__name__)

type ContentFetch = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class TechStackProfile:
    """Immutable accumulation of detected technology signals."""

    languages: dict[str, int] = field(default_factory=lambda: dict[str, int]())
    frameworks: frozenset[str] = frozenset()
    tools: frozenset[str] = frozenset()
    architecture_patterns: frozenset[str] = frozenset()
    security_issues_count: int = 0
    quality_issues_count: int = 0

    def merge(self, other: TechStackProfile) -> TechStackProfile:
        """Union sets and sum counters; neither operand is modified."""
        languages = dict(self.languages)
        for ext, count in other.languages.items():
            languages[ext] = languages.get(ext, 0) + count
        return TechStackProfile(
            languages=languages,
            frameworks=self.frameworks | other.frameworks,
            tools=self.tools | other.tools,
            architecture_patterns=(
                self.architecture_patterns | other.architecture_patterns
            ),
            security_issues_count=(
                self.security_issues_count + other.security_issues_count
            ),
            quality_issues_count=(
                self.quality_issues_count + other.quality_issues_count
            ),
        )

    @classmethod
    def merge_all(
        cls, profiles: Iterable[TechStackProfile]
    ) -> TechStackProfile:
        merged = cls()
        for profile in profiles:
            merged = merged.merge(profile)
        return merged

    @classmethod
    def from_tags(
        cls, tags: Iterable[tuple[str, TagCategory]]
    ) -> TechStackProfile:
        buckets: dict[TagCategory, set[str]] = {c: set() for c in TagCategory}
        for tag, category in tags:
            buckets[category].add(tag)
        return cls(
            frameworks=frozenset(buckets[TagCategory.FRAMEWORK]),
            tools=frozenset(buckets[TagCategory.TOOL]),
            architecture_patterns=frozenset(
                buckets[TagCategory.ARCHITECTURE]
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Persisted shape; set members sorted for stable output."""
        return {
            "languages": dict(sorted(self.languages.items())),
            "frameworks": sorted(self.frameworks),
            "tools": sorted(self.tools),
            "architecture_patterns": sorted(self.architecture_patterns),
            "security_issues_count": self.security_issues_count,
            "quality_issues_count": self.quality_issues_count,
        }


# ── Dependency token extractors ──────────────────────────


def _npm_tokens(content: str) -> list[str]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ManifestUnparseable(f"package.json: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestUnparseable("package.json: not an object")
    tokens: list[str] = []
    for key in ("dependencies", "devDependencies"):
        deps = data.get(key) or {}
        if isinstance(deps, dict):
            tokens.extend(str(name) for name in deps)
    return tokens


def _composer_tokens(content: str) -> list[str]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ManifestUnparseable(f"composer.json: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestUnparseable("composer.json: not an object")
    tokens: list[str] = []
    for key in ("require", "require-dev"):
        deps = data.get(key) or {}
        if isinstance(deps, dict):
            tokens.extend(str(name) for name in deps)
    return tokens


def _requirements_tokens(content: str) -> list[str]:
    return [
        line.strip()
        for line in content.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]


def _pyproject_table(
    data: dict[str, Any], key: str, where: str
) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ManifestUnparseable(
            f"pyproject.toml: {where} is not a table"
        )
    return value


def _pyproject_list(value: Any, where: str) -> list[str]:
    if not isinstance(value, list):
        raise ManifestUnparseable(
            f"pyproject.toml: {where} is not an array"
        )
    return [str(d) for d in value]


def _pyproject_tokens(content: str) -> list[str]:
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestUnparseable(f"pyproject.toml: {exc}") from exc
    project = _pyproject_table(data, "project", "project")
    tokens = _pyproject_list(
        project.get("dependencies", []), "project.dependencies"
    )
    extras = _pyproject_table(
        project, "optional-dependencies", "project.optional-dependencies"
    )
    for name, extra in extras.items():
        tokens.extend(
            _pyproject_list(extra, f"project.optional-dependencies.{name}")
        )
    tool = _pyproject_table(data, "tool", "tool")
    poetry = _pyproject_table(tool, "poetry", "tool.poetry")
    poetry_deps = _pyproject_table(
        poetry, "dependencies", "tool.poetry.dependencies"
    )
    tokens.extend(str(name) for name in poetry_deps)
    return tokens


def _cargo_tokens(content: str) -> list[str]:
    try:
        tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestUnparseable(f"Cargo.toml: {exc}") from exc
    return [content]


def _raw_tokens(content: str) -> list[str]:
    return [content]


_EXTRACTORS: dict[str, Callable[[str], list[str]]] = {
    "package.json": _npm_tokens,
    "composer.json": _composer_tokens,
    "requirements.txt": _requirements_tokens,
    "pyproject.toml": _pyproject_tokens,
    "Cargo.toml": _cargo_tokens,
    "go.mod": _raw_tokens,
    "pom.xml": _raw_tokens,
    "build.gradle": _raw_tokens,
    "Gemfile": _raw_tokens,
    "Dockerfile": _raw_tokens,
}


def ecosystem_for(basename: str) -> str | None:
    return MANIFEST_ECOSYSTEMS.get(basename)


def detect_manifest(basename: str, content: str) -> TechStackProfile:
    """Apply one ecosystem's signature table to a manifest's content.

    Raises ManifestUnparseable for malformed structured manifests.
    Unknown manifest names yield an empty profile.
    """
    ecosystem = ecosystem_for(basename)
    extractor = _EXTRACTORS.get(basename)
    if ecosystem is None or extractor is None:
        return TechStackProfile()

    tokens = [t.lower() for t in extractor(content)]
    return TechStackProfile.from_tags(
        (sig.tag, sig.category)
        for sig in signatures_for(ecosystem)
        if any(sig.signature in token for token in tokens)
    )


def detect_code(content: str, extension: str) -> TechStackProfile:
    """Keyword heuristics over already-fetched code; counts the language."""
    tagged = TechStackProfile.from_tags(
        (sig.tag, sig.category)
        for sig in CODE_SIGNATURES
        if sig.matches(content)
    )
    return TechStackProfile(languages={extension: 1}).merge(tagged)


async def run_manifest_pass(
    manifests: Iterable[FileCandidate],
    fetch: ContentFetch,
) -> TechStackProfile:
    """Sequentially fetch and scan manifests with a known ecosystem.

    Unreadable or unparseable manifests are logged and skipped.
    """
    profiles: list[TechStackProfile] = []
    for manifest in manifests:
        if ecosystem_for(manifest.basename) is None:
            continue
        try:
            try:
                content = await fetch(manifest.path)
            except FileFetchFailed as exc:
                raise ManifestUnreadable(str(exc)) from exc
            profiles.append(detect_manifest(manifest.basename, content))
        except (ManifestUnreadable, ManifestUnparseable) as exc:
            logger.warning(
                "event=manifest_skipped file=%s reason=%s error=%s",
                manifest.path,
                type(exc).__name__,
                exc,
            )
    merged = TechStackProfile.merge_all(profiles)
    logger.info(
        "event=manifest_pass_done frameworks=%d tools=%d",
        len(merged.frameworks),
        len(merged.tools),
    )
    return merged
