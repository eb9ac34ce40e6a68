"""Core circuit breaker implementation."""

import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import ParamSpec, TypeVar

from sdx_breaker.circuit_breaker.exceptions import (
    CircuitOpenError,
    TooManyRequestsError,
)
from sdx_breaker.circuit_breaker.hooks import StateChangeHook
from sdx_breaker.circuit_breaker.state import BreakerSnapshot, CircuitState, Counts
from sdx_breaker.logging import get_breaker_logger, log_exception

T = TypeVar("T")
P = ParamSpec("P")

DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_CONSECUTIVE_FAILURES = 5


def _monotonic() -> float:
    return time.monotonic()


def default_ready_to_trip(counts: Counts) -> bool:
    """Trip once more than five consecutive failures have been recorded."""
    return counts.consecutive_failures > DEFAULT_MAX_CONSECUTIVE_FAILURES


def default_is_successful(exc: Exception | None) -> bool:
    """Count a call as successful only when it raised nothing."""
    return exc is None


@dataclass(slots=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration values.

    Unset or non-positive values fall back to defaults when a breaker is
    built from the config.

    Attributes:
        name: Breaker name used in notifications and logs.
        max_requests: Probe calls admitted while ``HALF_OPEN``; also the
            consecutive successes needed to close again. ``0`` means 1.
        interval: Seconds between count resets while ``CLOSED``. ``0``
            never resets.
        timeout: Seconds to stay ``OPEN`` before probing. ``0`` means 60.
        ready_to_trip: Called with a copy of the counts after each failure
            while ``CLOSED``; returning ``True`` opens the circuit.
        is_successful: Classifies the outcome of a call: ``None`` when it
            returned normally, otherwise the exception it raised.
        on_state_change: Called with ``(name, old, new)`` after each
            transition.
    """

    name: str = ""
    max_requests: int = 0
    interval: float = 0.0
    timeout: float = 0.0
    ready_to_trip: Callable[[Counts], bool] | None = None
    is_successful: Callable[[Exception | None], bool] | None = None
    on_state_change: StateChangeHook | None = None

    def __post_init__(self) -> None:
        if self.max_requests < 0:
            raise ValueError("max_requests must be >= 0")


class CircuitBreaker:
    """State machine that stops calls which are likely to fail.

    ``CLOSED`` admits everything and counts outcomes. When ``ready_to_trip``
    holds after a failure the breaker goes ``OPEN`` and rejects calls until
    ``timeout`` elapses. The next call then finds it ``HALF_OPEN``, where up
    to ``max_requests`` probes are admitted. Enough consecutive successes
    close it again and any failure reopens it.

    Time-driven transitions happen lazily on the next call or state read;
    there is no background timer.
    """

    def __init__(self, config: CircuitBreakerConfig | None = None) -> None:
        """Build a circuit breaker from ``config``.

        Args:
            config: Breaker configuration. Defaults to
                ``CircuitBreakerConfig()``.
        """
        config = CircuitBreakerConfig() if config is None else config
        self._name = config.name
        self._max_requests = config.max_requests if config.max_requests > 0 else 1
        self._interval = config.interval if config.interval > 0 else 0.0
        self._timeout = config.timeout if config.timeout > 0 else DEFAULT_TIMEOUT
        self._ready_to_trip = (
            default_ready_to_trip
            if config.ready_to_trip is None
            else config.ready_to_trip
        )
        self._is_successful = (
            default_is_successful
            if config.is_successful is None
            else config.is_successful
        )
        self._on_state_change = config.on_state_change

        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._generation = 0
        self._counts = Counts()
        self._expiry: float | None = None
        self._to_new_generation(_monotonic())

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        """Current state, applying any transition that is already due."""
        with self._lock:
            state, _ = self._current_state(_monotonic())
            return state

    @property
    def counts(self) -> Counts:
        """Copy of the counters for the current generation."""
        with self._lock:
            return self._counts.copy()

    @property
    def generation(self) -> int:
        with self._lock:
            _, generation = self._current_state(_monotonic())
            return generation

    def snapshot(self) -> BreakerSnapshot:
        """Return a consistent view of state, generation, counts and expiry."""
        with self._lock:
            state, generation = self._current_state(_monotonic())
            return BreakerSnapshot(
                name=self._name,
                state=state,
                generation=generation,
                counts=self._counts.copy(),
                expiry=self._expiry,
            )

    def execute(
        self,
        func: Callable[P, T],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Invoke a callable under circuit breaker protection.

        Args:
            func: Dangerous callable to execute.
            *args: Positional arguments forwarded to ``func``.
            **kwargs: Keyword arguments forwarded to ``func``.

        Returns:
            The result of ``func`` when the call is admitted.

        Raises:
            CircuitOpenError: When the circuit is open and the call is rejected.
            TooManyRequestsError: When the half-open probe quota is exhausted.
            BaseException: Whatever ``func`` raised, re-raised unchanged after
                the outcome is recorded. An exception raised by
                ``is_successful`` propagates too; the call counts as failed.
        """
        generation = self._before_request()
        # Every admitted request is reported exactly once, as a failure
        # unless classified otherwise, even when ``is_successful`` raises.
        success = False
        try:
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                success = self._is_successful(exc)
                raise
            success = self._is_successful(None)
            return result
        finally:
            self._after_request(generation, success)

    async def call(
        self,
        func: Callable[P, Awaitable[T]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Await an async callable under circuit breaker protection.

        Same contract as :meth:`execute`. Cancellation of the awaiting task is
        recorded as a failure before it propagates.
        """
        generation = self._before_request()
        success = False
        try:
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                success = self._is_successful(exc)
                raise
            success = self._is_successful(None)
            return result
        finally:
            self._after_request(generation, success)

    def _before_request(self) -> int:
        with self._lock:
            state, generation = self._current_state(_monotonic())

            if state == CircuitState.OPEN:
                raise CircuitOpenError(self._name)
            if (
                state == CircuitState.HALF_OPEN
                and self._counts.requests >= self._max_requests
            ):
                raise TooManyRequestsError(self._name)

            self._counts.on_request()
            return generation

    def _after_request(self, before: int, success: bool) -> None:
        with self._lock:
            now = _monotonic()
            state, generation = self._current_state(now)
            if generation != before:
                return

            if success:
                self._on_success(state, now)
            else:
                self._on_failure(state, now)

    def _on_success(self, state: CircuitState, now: float) -> None:
        if state == CircuitState.CLOSED:
            self._counts.on_success()
        elif state == CircuitState.HALF_OPEN:
            self._counts.on_success()
            if self._counts.consecutive_successes >= self._max_requests:
                self._set_state(CircuitState.CLOSED, now)

    def _on_failure(self, state: CircuitState, now: float) -> None:
        if state == CircuitState.CLOSED:
            self._counts.on_failure()
            if self._ready_to_trip(self._counts.copy()):
                self._set_state(CircuitState.OPEN, now)
        elif state == CircuitState.HALF_OPEN:
            self._set_state(CircuitState.OPEN, now)

    def _current_state(self, now: float) -> tuple[CircuitState, int]:
        if self._state == CircuitState.CLOSED:
            if self._expiry is not None and self._expiry < now:
                self._to_new_generation(now)
        elif self._state == CircuitState.OPEN:
            if self._expiry is not None and self._expiry < now:
                self._set_state(CircuitState.HALF_OPEN, now)
        return self._state, self._generation

    def _set_state(self, state: CircuitState, now: float) -> None:
        if self._state == state:
            return

        previous = self._state
        self._state = state
        self._to_new_generation(now)
        self._emit_state_change(previous, state)

    def _to_new_generation(self, now: float) -> None:
        self._generation += 1
        self._counts.clear()

        if self._state == CircuitState.CLOSED:
            self._expiry = now + self._interval if self._interval > 0 else None
        elif self._state == CircuitState.OPEN:
            self._expiry = now + self._timeout
        else:
            self._expiry = None

    def _emit_state_change(self, old: CircuitState, new: CircuitState) -> None:
        if self._on_state_change is None:
            return
        try:
            self._on_state_change(self._name, old, new)
        except Exception:
            log_exception(
                get_breaker_logger(self._name),
                "circuit_breaker.state_change_hook_failed",
                old_state=str(old),
                new_state=str(new),
            )
