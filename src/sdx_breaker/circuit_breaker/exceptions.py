"""Circuit breaker exceptions.

Callers can distinguish between:
  - A call being rejected because the circuit is open.
  - A call being rejected because the half-open probe quota is already taken.

Both are raised at admission time only; the protected callable never runs.
"""


class CircuitBreakerError(Exception):
    """Base exception for the circuit breaker package."""


class CircuitOpenError(CircuitBreakerError):
    """Raised when a call is rejected because the circuit is open.

    Attributes:
        breaker_name: Name of the breaker rejecting the call.
    """

    def __init__(self, breaker_name: str) -> None:
        self.breaker_name = breaker_name
        super().__init__(f"circuit breaker is open: {breaker_name}")


class TooManyRequestsError(CircuitBreakerError):
    """Raised when a half-open breaker has no probe slots left.

    Attributes:
        breaker_name: Name of the breaker rejecting the call.
    """

    def __init__(self, breaker_name: str) -> None:
        self.breaker_name = breaker_name
        super().__init__(f"too many requests: {breaker_name}")
