"""LLM reviewer transport."""

from stackscore.analysis.llm._llm_call import (
    LLMCallResult,
    reset_breakers,
    review_completion,
)

__all__ = [
    "LLMCallResult",
    "reset_breakers",
    "review_completion",
]
