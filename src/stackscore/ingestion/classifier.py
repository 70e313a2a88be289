"""Partition a raw tree listing into code, manifest, doc and ignored."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import PurePosixPath

import pathspec

from stackscore.config import Settings
from stackscore.constants import (
    CODE_EXTENSIONS,
    CONFIG_EXTENSIONS,
    DOC_EXTENSIONS,
    EXCLUDED_SEGMENTS,
    MANIFEST_FILENAMES,
    FileKind,
)
from stackscore.ingestion.schemas import (
    ClassifiedFiles,
    FileCandidate,
    TreeEntry,
)

logger = logging.getLogger(__name__)


def build_exclusion_spec(
    skip_directories: Iterable[str] = (),
) -> pathspec.GitIgnoreSpec:
    """Directory-segment patterns: ``node_modules/`` matches at any depth."""
    segments = dict.fromkeys([*EXCLUDED_SEGMENTS, *skip_directories])
    return pathspec.GitIgnoreSpec.from_lines(
        [f"{segment.strip('/')}/" for segment in segments if segment]
    )


def _suffix(basename: str) -> str:
    """Lowercased extension with dot; dotfiles like ``.env`` are their own."""
    if "." not in basename:
        return ""
    return "." + basename.rsplit(".", 1)[1].lower()


def classify_entry(
    entry: TreeEntry,
    exclusions: pathspec.GitIgnoreSpec,
    max_size: int,
) -> FileKind:
    """Tag a single entry. Exclusion rules run before extension rules."""
    if entry.type != "blob":
        return FileKind.IGNORED
    if exclusions.match_file(entry.path):
        return FileKind.IGNORED
    if entry.size > max_size:
        return FileKind.IGNORED

    basename = PurePosixPath(entry.path).name
    ext = _suffix(basename)
    if ext in CODE_EXTENSIONS:
        return FileKind.CODE
    if ext in CONFIG_EXTENSIONS or basename in MANIFEST_FILENAMES:
        return FileKind.MANIFEST
    if ext in DOC_EXTENSIONS:
        return FileKind.DOC
    return FileKind.IGNORED


def classify_files(
    entries: Iterable[TreeEntry],
    settings: Settings | None = None,
) -> ClassifiedFiles:
    """Classify every entry; output lists are sorted by path.

    Same entries in any order produce the same result. Duplicate
    paths keep their first occurrence.
    """
    cfg = settings or Settings()
    exclusions = build_exclusion_spec(cfg.skip_directories)

    buckets: dict[FileKind, list[FileCandidate]] = {
        kind: [] for kind in FileKind
    }
    seen: set[str] = set()
    for entry in sorted(
        entries, key=lambda e: (e.path, e.type, e.size)
    ):
        if entry.path in seen:
            continue
        seen.add(entry.path)
        kind = classify_entry(entry, exclusions, cfg.max_file_size_bytes)
        buckets[kind].append(
            FileCandidate(path=entry.path, size=entry.size, kind=kind)
        )

    result = ClassifiedFiles(
        code=buckets[FileKind.CODE],
        manifest=buckets[FileKind.MANIFEST],
        doc=buckets[FileKind.DOC],
        ignored=buckets[FileKind.IGNORED],
    )
    logger.info(
        "event=files_classified code=%d manifest=%d doc=%d ignored=%d",
        len(result.code),
        len(result.manifest),
        len(result.doc),
        len(result.ignored),
    )
    return result
