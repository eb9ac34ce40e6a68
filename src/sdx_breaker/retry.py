from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_exponential_jitter,
)
from tenacity.retry import retry_base

from sdx_breaker.circuit_breaker import CircuitOpenError, TooManyRequestsError

ADMISSION_REJECTIONS: tuple[type[Exception], ...] = (
    CircuitOpenError,
    TooManyRequestsError,
)


@dataclass(frozen=True)
class RetryBackoffPolicy:
    """Configuration for retry attempt count and backoff boundaries."""

    attempts: int | None
    min_seconds: float
    max_seconds: float

    def __post_init__(self) -> None:
        if self.attempts is not None and self.attempts < 1:
            raise ValueError("attempts must be >= 1 when provided")
        if self.min_seconds < 0:
            raise ValueError("min_seconds must be >= 0")
        if self.max_seconds < 0:
            raise ValueError("max_seconds must be >= 0")
        if self.max_seconds < self.min_seconds:
            raise ValueError("max_seconds must be >= min_seconds")


def retry_if_rejected() -> retry_base:
    """Retry only when a breaker refused admission, never on call failures."""
    return retry_if_exception_type(ADMISSION_REJECTIONS)


def _retrying_kwargs(
    policy: RetryBackoffPolicy,
    *,
    sleep: Callable[[float], Any] | None,
    before_sleep: Callable[[RetryCallState], None] | None,
    reraise: bool,
) -> dict[str, Any]:
    stop = (
        stop_never if policy.attempts is None else stop_after_attempt(policy.attempts)
    )
    kwargs: dict[str, Any] = {
        "retry": retry_if_rejected(),
        "wait": wait_exponential_jitter(
            initial=policy.min_seconds,
            max=policy.max_seconds,
        ),
        "stop": stop,
        "reraise": reraise,
    }
    if sleep is not None:
        kwargs["sleep"] = sleep
    if before_sleep is not None:
        kwargs["before_sleep"] = before_sleep
    return kwargs


def build_admission_retrying(
    policy: RetryBackoffPolicy,
    *,
    sleep: Callable[[float], None] | None = None,
    before_sleep: Callable[[RetryCallState], None] | None = None,
    reraise: bool = True,
) -> Retrying:
    """Build a ``Retrying`` that backs off while a breaker rejects calls."""
    return Retrying(
        **_retrying_kwargs(
            policy,
            sleep=sleep,
            before_sleep=before_sleep,
            reraise=reraise,
        )
    )


def build_async_admission_retrying(
    policy: RetryBackoffPolicy,
    *,
    sleep: Callable[[float], Awaitable[None]] | None = None,
    before_sleep: Callable[[RetryCallState], None] | None = None,
    reraise: bool = True,
) -> AsyncRetrying:
    """Build an ``AsyncRetrying`` that backs off while a breaker rejects calls."""
    return AsyncRetrying(
        **_retrying_kwargs(
            policy,
            sleep=sleep,
            before_sleep=before_sleep,
            reraise=reraise,
        )
    )
