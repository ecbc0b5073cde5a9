"""Root conftest for all tests.

Shared fixtures: a controllable millisecond clock and race engines built on it.
"""

import pytest

from icekart.engine import RaceEngine

RACE_START = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = RACE_START) -> None:
        self.start = now
        self.now = now

    def __call__(self) -> int:
        return self.now

    def at(self, offset_ms: int) -> int:
        """Jump to ``offset_ms`` after the clock's start (may move backwards)."""
        self.now = self.start + offset_ms
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_engine(clock):
    """Factory for engines sharing the test clock."""

    def _make(total_laps: int = 3, checkpoints_per_lap: int = 2, warmup_arming: bool = True) -> RaceEngine:
        return RaceEngine(
            total_laps=total_laps,
            checkpoints_per_lap=checkpoints_per_lap,
            warmup_arming=warmup_arming,
            clock=clock,
        )

    return _make


@pytest.fixture
def engine(make_engine) -> RaceEngine:
    return make_engine()


@pytest.fixture
def published(engine) -> list[dict]:
    """Every message the engine publishes, in order."""
    messages: list[dict] = []
    engine.publisher.publish = lambda message: messages.append(message) or 0
    return messages
