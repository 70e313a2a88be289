"""Repository-level score, summary text and suggestion list.

All functions here are pure. Inputs may arrive in any order (file
tasks complete in arbitrary order), so nothing depends on list order
except the suggestion slices, which keep collection order.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from stackscore.analysis.review.schemas import FileInsight
from stackscore.analysis.tech_stack import TechStackProfile
from stackscore.constants import (
    ARCHITECTURE_BONUS_CAP,
    ARCHITECTURE_BONUS_PER_PATTERN,
    FRAMEWORK_BONUS_CAP,
    FRAMEWORK_BONUS_PER_FRAMEWORK,
    MAX_SUGGESTIONS,
    SCORE_MAX,
    SCORE_MIN,
    SECURITY_PENALTY_CAP,
    SECURITY_PENALTY_PER_FILE,
    SUGGESTION_SLICES,
)


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; 8.5 must become 9.
    return math.floor(value + 0.5)


def average_score(insights: Sequence[FileInsight]) -> float:
    if not insights:
        return 0.0
    return sum(i.score for i in insights) / len(insights)


def aggregate_score(
    insights: Sequence[FileInsight],
    profile: TechStackProfile,
) -> int:
    """Combine per-file scores with stack bonuses and security penalty.

    avg + min(2, 0.5·patterns) + min(1, 0.2·frameworks)
        − min(2, 0.3·files with security notes),
    rounded and clamped to [1, 10]. No insights → 1.
    """
    if not insights:
        return SCORE_MIN

    architecture_bonus = min(
        ARCHITECTURE_BONUS_CAP,
        ARCHITECTURE_BONUS_PER_PATTERN * len(profile.architecture_patterns),
    )
    framework_bonus = min(
        FRAMEWORK_BONUS_CAP,
        FRAMEWORK_BONUS_PER_FRAMEWORK * len(profile.frameworks),
    )
    security_penalty = min(
        SECURITY_PENALTY_CAP,
        SECURITY_PENALTY_PER_FILE * profile.security_issues_count,
    )
    combined = (
        average_score(insights)
        + architecture_bonus
        + framework_bonus
        - security_penalty
    )
    return max(SCORE_MIN, min(SCORE_MAX, round_half_up(combined)))


def build_summary(
    repo_name: str,
    insights: Sequence[FileInsight],
    profile: TechStackProfile,
) -> str:
    average = round_half_up(average_score(insights) * 10) / 10
    architecture = (
        ", ".join(sorted(profile.architecture_patterns))
        or "Basic structure detected"
    )
    frameworks = (
        ", ".join(sorted(profile.frameworks)) or "No major frameworks detected"
    )
    return (
        f"Comprehensive analysis of {repo_name}: Analyzed {len(insights)} "
        f"files across {len(profile.languages)} languages.\n\n"
        f"Architecture: {architecture}\n"
        f"Frameworks: {frameworks}\n"
        f"Code Quality: Average score {average:g}/10\n"
        f"Security: {profile.security_issues_count} potential security "
        "concerns identified\n"
        f"Technical Debt: {profile.quality_issues_count} code quality "
        "issues found"
    )


def collect_suggestions(
    recommendations: Sequence[str],
    quality_notes: Sequence[str],
    security_notes: Sequence[str],
) -> list[str]:
    """First 10 recommendations, 5 quality notes, 5 security notes."""
    rec_n, quality_n, security_n = SUGGESTION_SLICES
    suggestions = [
        *recommendations[:rec_n],
        *quality_notes[:quality_n],
        *security_notes[:security_n],
    ]
    return suggestions[:MAX_SUGGESTIONS]
