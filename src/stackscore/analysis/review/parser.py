"""Extract the score and named sections from validated reviewer text."""

from __future__ import annotations

import re
from dataclasses import dataclass

from stackscore.constants import (
    ARCHITECTURE_HEADER,
    DEBT_HEADER,
    PURPOSE_HEADER,
    QUALITY_HEADER,
    RECOMMENDATIONS_HEADER,
    REVIEW_DEFAULT_SCORE,
    SCORE_MARKER,
    SCORE_MAX,
    SCORE_MIN,
    SECTION_HEADERS,
    SECURITY_HEADER,
)

_SCORE_RE = re.compile(re.escape(SCORE_MARKER) + r"\s*(\d+)", re.IGNORECASE)

# "Maintainability Score:" lives inside the debt section, so the score
# marker never terminates a section.
_TERMINATORS = tuple(h for h in SECTION_HEADERS if h != SCORE_MARKER)


def _section_re(header: str) -> re.Pattern[str]:
    others = "|".join(re.escape(h) for h in _TERMINATORS if h != header)
    return re.compile(
        re.escape(header) + r"[ \t]*(.*?)(?=" + others + r"|\Z)",
        re.IGNORECASE | re.DOTALL,
    )


_SECTION_PATTERNS: dict[str, re.Pattern[str]] = {
    h: _section_re(h) for h in _TERMINATORS
}


@dataclass(frozen=True)
class ParsedReview:
    score: int
    purpose: str = ""
    quality: str = ""
    architecture: str = ""
    security: str = ""
    technical_debt: str = ""
    recommendations: str = ""


def clamp_score(value: int) -> int:
    return max(SCORE_MIN, min(SCORE_MAX, value))


def parse_score(text: str) -> int:
    """Integer after ``SCORE:``, clamped; default when absent."""
    match = _SCORE_RE.search(text)
    if match is None:
        return REVIEW_DEFAULT_SCORE
    return clamp_score(int(match.group(1)))


def extract_section(text: str, header: str) -> str:
    """Body of ``header`` up to the next known header; "" if absent."""
    pattern = _SECTION_PATTERNS.get(header) or _section_re(header)
    match = pattern.search(text)
    if match is None:
        return ""
    return match.group(1).strip()


def parse_review(text: str) -> ParsedReview:
    return ParsedReview(
        score=parse_score(text),
        purpose=extract_section(text, PURPOSE_HEADER),
        quality=extract_section(text, QUALITY_HEADER),
        architecture=extract_section(text, ARCHITECTURE_HEADER),
        security=extract_section(text, SECURITY_HEADER),
        technical_debt=extract_section(text, DEBT_HEADER),
        recommendations=extract_section(text, RECOMMENDATIONS_HEADER),
    )
