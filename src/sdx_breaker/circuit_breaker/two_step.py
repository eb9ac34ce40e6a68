"""Two-step circuit breaker for callers that cannot wrap their work."""

from collections.abc import Callable

from sdx_breaker.circuit_breaker.breaker import CircuitBreaker, CircuitBreakerConfig
from sdx_breaker.circuit_breaker.state import CircuitState, Counts


class TwoStepCircuitBreaker:
    """Circuit breaker split into an admission check and an outcome report.

    Example::

        done = breaker.allow()
        try:
            send(frame)
        except OSError:
            done(False)
            raise
        done(True)

    Reporting twice, or never, is not prevented. A report that arrives after
    the breaker moved to a new generation is ignored.
    """

    def __init__(self, config: CircuitBreakerConfig | None = None) -> None:
        self._breaker = CircuitBreaker(config)

    @property
    def name(self) -> str:
        return self._breaker.name

    @property
    def state(self) -> CircuitState:
        return self._breaker.state

    @property
    def counts(self) -> Counts:
        return self._breaker.counts

    def allow(self) -> Callable[[bool], None]:
        """Ask whether a request may proceed.

        Returns:
            A ``done(success)`` callback that records the request outcome.

        Raises:
            CircuitOpenError: When the circuit is open.
            TooManyRequestsError: When the half-open probe quota is exhausted.
        """
        # Package-internal: shares the engine's admission/report pair with
        # CircuitBreaker.execute so both facades follow one transition path.
        generation = self._breaker._before_request()

        def done(success: bool) -> None:
            self._breaker._after_request(generation, success)

        return done
