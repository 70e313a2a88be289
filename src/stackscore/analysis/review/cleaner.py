"""Normalize reviewer text and validate it against the output contract."""

from __future__ import annotations

import re

from stackscore.constants import (
    FORBIDDEN_MARKUP_CHARS,
    RECOMMENDATIONS_HEADER,
    SCORE_MARKER,
    SECTION_HEADERS,
)

_HEADING_RE = re.compile(r"#+[ \t]*")
_BULLET_RE = re.compile(r"^[ \t]*[-*][ \t]+", re.MULTILINE)
_NUMBERING_RE = re.compile(r"^(\d+)[.)][ \t]+", re.MULTILINE)
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_MAX_CLEAN_PASSES = 4


def _clean_once(text: str) -> str:
    # Bullets before asterisks so "* item" loses its marker whole
    cleaned = _BULLET_RE.sub("", text)
    cleaned = cleaned.replace("*", "")
    cleaned = _HEADING_RE.sub("", cleaned)
    lines = [line.strip() for line in cleaned.splitlines()]
    cleaned = "\n".join(lines)
    cleaned = _NUMBERING_RE.sub(r"\1. ", cleaned)
    cleaned = _BLANK_RUN_RE.sub("\n\n", cleaned)
    return cleaned.strip()


def clean_review_text(text: str) -> str:
    """Strip emphasis, heading and bullet markup; normalize numbering.

    Repeats until stable, so cleaning already-clean text is a no-op.
    """
    cleaned = text
    for _ in range(_MAX_CLEAN_PASSES):
        nxt = _clean_once(cleaned)
        if nxt == cleaned:
            break
        cleaned = nxt
    return cleaned


def has_forbidden_markup(text: str) -> bool:
    return any(ch in FORBIDDEN_MARKUP_CHARS for ch in text)


def headers_in_order(text: str) -> bool:
    """True if every header present appears in contract order."""
    positions = [text.find(h) for h in SECTION_HEADERS]
    present = [p for p in positions if p >= 0]
    return present == sorted(present)


def is_valid_review(text: str, *, strict_order: bool = False) -> bool:
    """Contract check on already-cleaned text."""
    if has_forbidden_markup(text):
        return False
    if SCORE_MARKER not in text or RECOMMENDATIONS_HEADER not in text:
        return False
    if strict_order and not headers_in_order(text):
        return False
    return True
