from __future__ import annotations

import pytest

import sdx_breaker.circuit_breaker.breaker as breaker_mod
from tests.sdx_breaker.support.breaker_fakes import (
    FakeClock,
    FakeLogger,
    RecordingHook,
)


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Provide a fresh structured logger test double per test."""
    return FakeLogger()


@pytest.fixture
def fake_clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Drive breaker time from a manually advanced clock."""
    clock = FakeClock()
    monkeypatch.setattr(breaker_mod, "_monotonic", clock.now)
    return clock


@pytest.fixture
def recording_hook() -> RecordingHook:
    """Provide a state-change hook that records transitions."""
    return RecordingHook()
