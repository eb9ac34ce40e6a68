"""State-change notification hooks for circuit breakers."""

from __future__ import annotations

import logging
from typing import Protocol

from sdx_breaker.circuit_breaker.state import CircuitState
from sdx_breaker.logging import (
    StructuredLogger,
    get_breaker_logger,
    log_exception,
    log_info,
    log_warning,
)


class StateChangeHook(Protocol):
    """Callback fired after a breaker commits a state transition.

    Notes:
        Hooks run while the breaker still holds its internal lock. They must
        return promptly and must not call back into the same breaker.
    """

    def __call__(self, name: str, old: CircuitState, new: CircuitState) -> None:
        """Handle one breaker state transition."""


class LoggingStateChangeHook:
    """Hook that logs every transition, at WARNING when a breaker trips open."""

    def __init__(
        self,
        logger: StructuredLogger | logging.Logger | None = None,
    ) -> None:
        """Create a logging hook.

        Args:
            logger: Structured or stdlib logger. When omitted, a structlog
                logger bound to the breaker name is resolved per event.
        """
        self._logger = logger

    def __call__(self, name: str, old: CircuitState, new: CircuitState) -> None:
        logger = get_breaker_logger(name) if self._logger is None else self._logger
        fields: dict[str, object] = {
            "breaker": name,
            "old_state": str(old),
            "new_state": str(new),
        }
        if new == CircuitState.OPEN:
            log_warning(logger, "circuit_breaker.state_changed", **fields)
            return
        log_info(logger, "circuit_breaker.state_changed", **fields)


def chain_hooks(*hooks: StateChangeHook) -> StateChangeHook:
    """Combine hooks into one that calls each in order.

    A hook that raises is logged and skipped; later hooks still run.
    """

    def _chained(name: str, old: CircuitState, new: CircuitState) -> None:
        for hook in hooks:
            try:
                hook(name, old, new)
            except Exception:
                log_exception(
                    get_breaker_logger(name),
                    "circuit_breaker.state_change_hook_failed",
                    old_state=str(old),
                    new_state=str(new),
                )

    return _chained
