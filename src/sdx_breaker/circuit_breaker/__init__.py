"""Process-local, thread-safe circuit breaker.

This package implements the circuit breaker pattern from *Release It!*.

Key behavior notes:
  - Counts belong to a generation. A new generation starts on every state
    change and at each ``interval`` while ``CLOSED``; outcomes reported for
    requests admitted in an older generation are dropped.
  - ``OPEN`` becomes ``HALF_OPEN`` lazily, on the first call or state read
    after ``timeout`` has passed. No timer thread is involved.
  - ``HALF_OPEN`` admits at most ``max_requests`` probes and closes after as
    many consecutive successes. Any probe failure reopens the circuit.
  - Exceptions raised by the protected callable are recorded and re-raised
    unchanged.
"""

from sdx_breaker.circuit_breaker.breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    default_is_successful,
    default_ready_to_trip,
)
from sdx_breaker.circuit_breaker.exceptions import (
    CircuitBreakerError,
    CircuitOpenError,
    TooManyRequestsError,
)
from sdx_breaker.circuit_breaker.hooks import (
    LoggingStateChangeHook,
    StateChangeHook,
    chain_hooks,
)
from sdx_breaker.circuit_breaker.state import BreakerSnapshot, CircuitState, Counts
from sdx_breaker.circuit_breaker.two_step import TwoStepCircuitBreaker

__all__ = [
    "BreakerSnapshot",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitOpenError",
    "CircuitState",
    "Counts",
    "LoggingStateChangeHook",
    "StateChangeHook",
    "TooManyRequestsError",
    "TwoStepCircuitBreaker",
    "chain_hooks",
    "default_is_successful",
    "default_ready_to_trip",
]
