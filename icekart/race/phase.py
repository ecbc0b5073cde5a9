"""Race phase controller.

The phase only moves along the edges of ``PHASE_TRANSITIONS``. Leaving
``stopped`` takes an explicit start or reset; the finish detector can only
move a running race forward.
"""

from __future__ import annotations

from loguru import logger

from icekart.race.clock import Clock
from icekart.race.course_records import CourseRecordTracker
from icekart.race.errors import InvalidPhaseTransition
from icekart.race.models import RaceState, RaceStatus
from icekart.race.registry import RacerRegistry

PHASE_TRANSITIONS: dict[RaceStatus, frozenset[RaceStatus]] = {
    RaceStatus.IDLE: frozenset({RaceStatus.IDLE, RaceStatus.RACING}),
    RaceStatus.RACING: frozenset(
        {RaceStatus.IDLE, RaceStatus.RACING, RaceStatus.FINISHING, RaceStatus.STOPPED}
    ),
    RaceStatus.FINISHING: frozenset(
        {RaceStatus.IDLE, RaceStatus.RACING, RaceStatus.FINISHING, RaceStatus.STOPPED}
    ),
    RaceStatus.STOPPED: frozenset({RaceStatus.IDLE, RaceStatus.RACING, RaceStatus.STOPPED}),
}


class PhaseController:
    def __init__(
        self,
        state: RaceState,
        registry: RacerRegistry,
        records: CourseRecordTracker,
        clock: Clock,
    ) -> None:
        self._state = state
        self._registry = registry
        self._records = records
        self._clock = clock

    def can_transition(self, target: RaceStatus) -> bool:
        return target in PHASE_TRANSITIONS[self._state.status]

    def transition(self, target: RaceStatus) -> None:
        """Move the race to ``target``.

        Raises:
            InvalidPhaseTransition: If the phase table has no such edge
        """
        current = self._state.status
        if not self.can_transition(target):
            raise InvalidPhaseTransition(current, target)
        self._state.status = target
        if current != target:
            logger.debug(f"[RACE] Phase {current} -> {target}")

    def start(self) -> None:
        """Start or resume the race. The start time is only taken on the first start."""
        self.transition(RaceStatus.RACING)
        self._state.end_time = None
        if self._state.start_time is None:
            self._state.start_time = self._clock()
            logger.info(f"[RACE] Started at {self._state.start_time}")
        else:
            logger.info("[RACE] Resumed, keeping original start time")

    def stop(self) -> None:
        self.transition(RaceStatus.STOPPED)
        self._state.end_time = self._clock()
        logger.info(f"[RACE] Stopped at {self._state.end_time}")

    def reset(self) -> None:
        """Return to idle, clear course records and zero every racer's progress."""
        self.transition(RaceStatus.IDLE)
        self._state.start_time = None
        self._state.end_time = None
        self._records.clear()
        for racer in self._registry:
            racer.reset_progress()
        logger.info(f"[RACE] Reset - stats cleared for {len(self._registry)} racers")
