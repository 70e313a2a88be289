"""Per-file LLM review: prompt, validate-then-retry, parse."""

from stackscore.analysis.review.cleaner import (
    clean_review_text,
    is_valid_review,
)
from stackscore.analysis.review.parser import ParsedReview, parse_review
from stackscore.analysis.review.reviewer import (
    make_batches,
    request_valid_review,
    review_code_files,
    review_file,
)
from stackscore.analysis.review.schemas import (
    FileInsight,
    FileOutcome,
    ReviewSummary,
)

__all__ = [
    "FileInsight",
    "FileOutcome",
    "ParsedReview",
    "ReviewSummary",
    "clean_review_text",
    "is_valid_review",
    "make_batches",
    "parse_review",
    "request_valid_review",
    "review_code_files",
    "review_file",
]
