"""Batched per-file LLM review with a validate-then-retry loop.

Files are reviewed in fixed-size batches: every member of a batch runs
concurrently, and the next batch starts only once the whole batch has
finished. That bounds outstanding requests against both the repository
host and the reviewer to the batch size.

Each file task returns a :class:`FileOutcome`; nothing is shared
between tasks. Outcomes are merged after all batches join.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from stackscore.analysis.llm import review_completion
from stackscore.analysis.review.cleaner import (
    clean_review_text,
    is_valid_review,
)
from stackscore.analysis.review.parser import parse_review
from stackscore.analysis.review.schemas import (
    FileInsight,
    FileOutcome,
    ReviewAttempt,
    ReviewSummary,
)
from stackscore.analysis.tech_stack import (
    ContentFetch,
    TechStackProfile,
    detect_code,
)
from stackscore.config import Settings
from stackscore.constants import ReviewState
from stackscore.errors import (
    FileFetchFailed,
    ReviewInvalid,
    ReviewUnavailable,
)
from stackscore.ingestion.schemas import FileCandidate
from stackscore.prompts import build_review_prompt

logger = logging.getLogger(__name__)


def make_batches[T](items: Sequence[T], size: int) -> list[list[T]]:
    if size < 1:
        raise ValueError("batch size must be positive")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def request_valid_review(
    prompt: str,
    settings: Settings,
    path: str = "",
) -> ReviewAttempt:
    """Call the reviewer until the cleaned text validates.

    States: ATTEMPTING → VALID | EXHAUSTED. At most
    ``settings.review_max_attempts`` calls are made. A transport
    failure propagates as ReviewUnavailable on the spot; exhaustion
    raises ReviewInvalid.
    """
    state = ReviewState.ATTEMPTING
    attempt = ReviewAttempt(number=0, text="", valid=False)
    number = 0
    input_tokens = output_tokens = 0
    while state is ReviewState.ATTEMPTING:
        result = await review_completion(prompt, settings)
        input_tokens += result.input_tokens
        output_tokens += result.output_tokens
        text = clean_review_text(result.content)
        attempt = ReviewAttempt(
            number=number,
            text=text,
            valid=is_valid_review(
                text, strict_order=settings.review_strict_order
            ),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
        number += 1
        if attempt.valid:
            state = ReviewState.VALID
        elif number >= settings.review_max_attempts:
            state = ReviewState.EXHAUSTED
        else:
            logger.info(
                "event=review_retry file=%s attempt=%d",
                path,
                number,
            )

    if state is ReviewState.EXHAUSTED:
        raise ReviewInvalid(
            f"{path}: no valid response after {number} attempts"
        )
    return attempt


async def review_file(
    candidate: FileCandidate,
    fetch: ContentFetch,
    settings: Settings,
) -> FileOutcome:
    """Fetch, tag, review and parse one code file.

    Recoverable failures produce an outcome without an insight.
    """
    path = candidate.path
    try:
        content = await fetch(path)
    except FileFetchFailed as exc:
        logger.warning("event=file_skipped file=%s reason=fetch error=%s", path, exc)
        return FileOutcome(path=path)
    if not content:
        logger.info("event=file_skipped file=%s reason=empty", path)
        return FileOutcome(path=path)

    extension = candidate.extension
    profile = detect_code(content, extension)
    prompt = build_review_prompt(
        extension, path, content, settings.review_content_chars
    )

    try:
        attempt = await request_valid_review(prompt, settings, path)
    except (ReviewUnavailable, ReviewInvalid) as exc:
        logger.warning(
            "event=file_skipped file=%s reason=%s error=%s",
            path,
            type(exc).__name__,
            exc,
        )
        return FileOutcome(path=path, profile=profile)

    parsed = parse_review(attempt.text)
    issue_counts = TechStackProfile(
        security_issues_count=int(bool(parsed.security)),
        quality_issues_count=int(bool(parsed.quality)),
    )
    return FileOutcome(
        path=path,
        profile=profile.merge(issue_counts),
        insight=FileInsight(
            file=path,
            analysis=attempt.text,
            score=parsed.score,
            size=candidate.size,
            extension=extension,
        ),
        parsed=parsed,
        input_tokens=attempt.input_tokens,
        output_tokens=attempt.output_tokens,
    )


async def review_code_files(
    files: Sequence[FileCandidate],
    fetch: ContentFetch,
    settings: Settings,
) -> ReviewSummary:
    """Review all code files batch by batch and merge the outcomes."""
    batches = make_batches(files, settings.review_batch_size)
    outcomes: list[FileOutcome] = []

    for index, batch in enumerate(batches, start=1):
        logger.info(
            "event=review_batch_start batch=%d/%d size=%d",
            index,
            len(batches),
            len(batch),
        )
        results = await asyncio.gather(
            *(review_file(f, fetch, settings) for f in batch),
            return_exceptions=True,
        )
        for candidate, result in zip(batch, results, strict=True):
            if isinstance(result, BaseException):
                logger.error(
                    "event=file_task_crashed file=%s error=%s",
                    candidate.path,
                    result,
                    exc_info=result,
                )
                continue
            outcomes.append(result)

    summary = ReviewSummary.from_outcomes(outcomes, batches=len(batches))
    logger.info(
        "event=review_done files=%d reviewed=%d batches=%d"
        " input_tokens=%d output_tokens=%d",
        len(files),
        len(summary.insights),
        summary.batches,
        summary.input_tokens,
        summary.output_tokens,
    )
    return summary
