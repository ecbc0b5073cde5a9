"""Race domain types.

A racer's ``finished`` flag is one-way and ``disqualified`` is a toggle. Both
live in private fields and change only through ``mark_finished()`` and
``toggle_disqualified()``; ``reset_progress()`` is the single place a racer
becomes unfinished again, and it runs only on a race reset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

# last_lap_timestamp value of a racer whose lap timing has not started yet
UNARMED = 0


class RaceStatus(StrEnum):
    """Race-wide phase."""

    IDLE = "idle"
    RACING = "racing"
    FINISHING = "finishing"
    STOPPED = "stopped"

    @property
    def accepts_progress(self) -> bool:
        return self in (RaceStatus.RACING, RaceStatus.FINISHING)


@dataclass(frozen=True)
class LapRecord:
    """A completed lap.

    Attributes:
        lap_number: 1-based lap number
        lap_time: Lap duration in milliseconds
        splits: Split times within the lap, in milliseconds since lap start
    """

    lap_number: int
    lap_time: int
    splits: tuple[int, ...] = ()


@dataclass
class Racer:
    """A registered participant and its progress in the current race."""

    id: str
    name: str
    avatar: str = ""

    laps: int = 0
    checkpoints: int = 0
    last_lap_timestamp: int = UNARMED
    total_time: int = 0
    best_lap: int | None = None
    gap: int = 0
    history: list[LapRecord] = field(default_factory=list)
    current_lap_splits: list[int] = field(default_factory=list)

    _disqualified: bool = field(default=False, repr=False)
    _finished: bool = field(default=False, repr=False)

    @property
    def disqualified(self) -> bool:
        return self._disqualified

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def armed(self) -> bool:
        return self.last_lap_timestamp != UNARMED

    @property
    def active(self) -> bool:
        """Whether progress events for this racer are applied."""
        return not (self._disqualified or self._finished)

    def toggle_disqualified(self) -> bool:
        """Flip the disqualification flag and return the new value."""
        self._disqualified = not self._disqualified
        return self._disqualified

    def mark_finished(self) -> None:
        self._finished = True

    def advance_total_time(self, total_time: int) -> None:
        """Move total_time forward; never moves it back and never touches a finished racer."""
        if self._finished:
            return
        self.total_time = max(self.total_time, total_time)

    def reset_progress(self) -> None:
        """Zero every progress field. Identity (id, name, avatar) is kept."""
        self.laps = 0
        self.checkpoints = 0
        self.last_lap_timestamp = UNARMED
        self.total_time = 0
        self.best_lap = None
        self.gap = 0
        self.history = []
        self.current_lap_splits = []
        self._disqualified = False
        self._finished = False


@dataclass
class RaceState:
    """The single active race.

    Attributes:
        total_laps: Laps needed to finish
        checkpoints_per_lap: Checkpoints that make up one lap
        status: Current race phase
        start_time: Epoch ms of the first start; None until started or after reset
        end_time: Epoch ms of the stop; None while not stopped
    """

    total_laps: int
    checkpoints_per_lap: int
    status: RaceStatus = RaceStatus.IDLE
    start_time: int | None = None
    end_time: int | None = None

    def elapsed(self, now: int) -> int:
        """Milliseconds since race start (0 before the race has started)."""
        if self.start_time is None:
            return 0
        return now - self.start_time
