"""Value types produced by the per-file review stage."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from stackscore.analysis.review.parser import ParsedReview
from stackscore.analysis.tech_stack import TechStackProfile


@dataclass(frozen=True)
class FileInsight:
    """One successfully reviewed code file."""

    file: str
    analysis: str
    score: int
    size: int
    extension: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "analysis": self.analysis,
            "score": self.score,
            "size": self.size,
            "extension": self.extension,
        }


@dataclass(frozen=True)
class ReviewAttempt:
    """Transient; lives only inside the retry loop."""

    number: int
    text: str
    valid: bool
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class FileOutcome:
    """Everything one file task hands back to the batch runner.

    ``insight`` is None when the file was skipped. ``profile`` still
    carries code-pass tags if content was fetched before the skip.
    Token counts cover every reviewer call behind a valid review.
    """

    path: str
    profile: TechStackProfile = field(default_factory=TechStackProfile)
    insight: FileInsight | None = None
    parsed: ParsedReview | None = None
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class ReviewSummary:
    """Merged result of all batches."""

    insights: list[FileInsight] = field(
        default_factory=lambda: list[FileInsight]()
    )
    profile: TechStackProfile = field(default_factory=TechStackProfile)
    recommendations: list[str] = field(default_factory=lambda: list[str]())
    quality_notes: list[str] = field(default_factory=lambda: list[str]())
    security_notes: list[str] = field(default_factory=lambda: list[str]())
    batches: int = 0
    input_tokens: int = 0
    output_tokens: int = 0

    @classmethod
    def from_outcomes(
        cls, outcomes: Iterable[FileOutcome], batches: int = 0
    ) -> ReviewSummary:
        summary = cls(batches=batches)
        profiles: list[TechStackProfile] = []
        for outcome in outcomes:
            profiles.append(outcome.profile)
            summary.input_tokens += outcome.input_tokens
            summary.output_tokens += outcome.output_tokens
            if outcome.insight is None or outcome.parsed is None:
                continue
            summary.insights.append(outcome.insight)
            parsed = outcome.parsed
            if parsed.quality:
                summary.quality_notes.append(
                    f"{outcome.path}: {parsed.quality}"
                )
            if parsed.security:
                summary.security_notes.append(
                    f"{outcome.path}: {parsed.security}"
                )
            if parsed.recommendations:
                summary.recommendations.append(
                    f"{outcome.path}: {parsed.recommendations}"
                )
        summary.profile = TechStackProfile.merge_all(profiles)
        return summary
