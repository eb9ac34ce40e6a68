"""Circuit breaker state primitives."""

from dataclasses import dataclass, field, replace
from enum import StrEnum


class CircuitState(StrEnum):
    """Circuit breaker state values."""

    CLOSED = "closed"
    HALF_OPEN = "half-open"
    OPEN = "open"


@dataclass(slots=True)
class Counts:
    """Request outcome counters for the current generation.

    The breaker clears its counts on every state change and at each
    closed-state interval. Outcomes reported for requests admitted before the
    clear are ignored.

    Attributes:
        requests: Requests admitted in this generation.
        total_successes: Successful outcomes recorded.
        total_failures: Failed outcomes recorded.
        consecutive_successes: Successes since the last failure.
        consecutive_failures: Failures since the last success.
    """

    requests: int = 0
    total_successes: int = 0
    total_failures: int = 0
    consecutive_successes: int = 0
    consecutive_failures: int = 0

    def on_request(self) -> None:
        self.requests += 1

    def on_success(self) -> None:
        self.total_successes += 1
        self.consecutive_successes += 1
        self.consecutive_failures = 0

    def on_failure(self) -> None:
        self.total_failures += 1
        self.consecutive_failures += 1
        self.consecutive_successes = 0

    def clear(self) -> None:
        self.requests = 0
        self.total_successes = 0
        self.total_failures = 0
        self.consecutive_successes = 0
        self.consecutive_failures = 0

    def copy(self) -> "Counts":
        """Return a detached copy safe to hand outside the breaker lock."""
        return replace(self)


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of breaker internals useful for metrics/logging.

    Attributes:
        name: Breaker name.
        state: State after any due time-driven transition.
        generation: Current statistics generation.
        counts: Copy of the counters for ``generation``.
        expiry: Monotonic deadline of the current generation, if any.
    """

    name: str
    state: CircuitState
    generation: int
    counts: Counts = field(default_factory=Counts)
    expiry: float | None = None
