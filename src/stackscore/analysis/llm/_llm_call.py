"""Single reviewer completion behind a per-model circuit breaker."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import litellm
from circuitbreaker import (  # pyright: ignore[reportUnknownVariableType]
    CircuitBreaker,
    CircuitBreakerError,
)
from litellm.exceptions import RateLimitError as LitellmRateLimitError

from stackscore.config import Settings
from stackscore.constants import (
    CB_LLM_FAILURE_THRESHOLD,
    CB_LLM_RECOVERY_TIMEOUT,
)
from stackscore.errors import ReviewUnavailable, classify_error

logger = logging.getLogger(__name__)

# litellm stubs have partially unknown types; typed alias
if TYPE_CHECKING:
    _acompletion: Callable[..., Coroutine[Any, Any, Any]]
else:
    _acompletion = litellm.acompletion


@dataclass(frozen=True)
class LLMCallResult:
    """First completion's text plus token metadata."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int


def _is_non_rate_limit_error(
    thrown_type: type, thrown_value: BaseException
) -> bool:
    """Return True if NOT a rate limit error (should count as CB failure).

    Rate limit errors are backpressure signals, not provider outages,
    so they are excluded from circuit breaker failure tracking.
    """
    return not issubclass(thrown_type, LitellmRateLimitError)


# Per-model registry: one provider's outage must not trip another's
_breaker_registry: dict[str, CircuitBreaker] = {}  # pyright: ignore[reportUnknownVariableType]


def _get_breaker(model: str) -> CircuitBreaker:  # pyright: ignore[reportUnknownParameterType]
    if model not in _breaker_registry:
        _breaker_registry[model] = CircuitBreaker(  # pyright: ignore[reportUnknownMemberType]
            failure_threshold=CB_LLM_FAILURE_THRESHOLD,
            recovery_timeout=CB_LLM_RECOVERY_TIMEOUT,
            expected_exception=_is_non_rate_limit_error,
            name=f"llm_{model}",
        )
    return _breaker_registry[model]


def reset_breakers() -> None:
    """Forget all breaker state (tests and process restarts)."""
    _breaker_registry.clear()


async def review_completion(
    prompt: str, settings: Settings
) -> LLMCallResult:
    """Send one user-role prompt; return the first choice's text.

    There is no retry here: any transport failure, non-2xx response,
    open breaker, or response without choices raises
    ReviewUnavailable and the caller abandons the file.
    """
    model = settings.reviewer_model
    breaker = _get_breaker(model)
    kwargs: dict[str, Any] = {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": settings.reviewer_temperature,
        "max_tokens": settings.reviewer_max_tokens,
        "timeout": settings.reviewer_timeout_seconds,
    }
    if settings.reviewer_api_key:
        kwargs["api_key"] = settings.reviewer_api_key

    try:
        if breaker.opened:  # pyright: ignore[reportUnknownMemberType]
            raise CircuitBreakerError(breaker)  # pyright: ignore[reportUnknownArgumentType]
        with breaker:  # pyright: ignore[reportUnknownMemberType]
            response: Any = await _acompletion(**kwargs)
    except CircuitBreakerError as exc:
        raise ReviewUnavailable(f"circuit open for {model}") from exc
    except Exception as exc:
        raise ReviewUnavailable(
            f"{model}: {classify_error(exc).value}: {exc}"
        ) from exc

    choices: Any = getattr(response, "choices", None) or []
    if not choices:
        raise ReviewUnavailable(f"{model}: response has no choices")

    usage: Any = getattr(response, "usage", None)
    return LLMCallResult(
        content=str(choices[0].message.content or ""),
        model=model,
        input_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
        output_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
    )
