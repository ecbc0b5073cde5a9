"""Finish detection.

Once the first racer completes the required laps the race enters
``finishing``: every other racer gets to complete the lap they are on, and
that lap completion finishes them regardless of their lap count. The race
stops once every non-disqualified racer has finished.
"""

from __future__ import annotations

from loguru import logger

from icekart.race.models import RaceState, RaceStatus, Racer
from icekart.race.phase import PhaseController
from icekart.race.registry import RacerRegistry


class FinishDetector:
    def __init__(self, state: RaceState, registry: RacerRegistry, phase: PhaseController) -> None:
        self._state = state
        self._registry = registry
        self._phase = phase

    def on_lap_completed(self, racer: Racer) -> None:
        """Update finish flags and race phase after ``racer`` completed a lap."""
        if self._state.status == RaceStatus.RACING:
            if racer.laps >= self._state.total_laps:
                racer.mark_finished()
                self._phase.transition(RaceStatus.FINISHING)
                logger.info(f"[RACE] {racer.name} finished the race! Entering finishing mode.")
        elif self._state.status == RaceStatus.FINISHING:
            racer.mark_finished()
            logger.info(f"[RACE] {racer.name} finished their last lap.")

        self.check_completion()

    def all_finished(self) -> bool:
        """Whether every non-disqualified racer has finished. Disqualified racers are ignored."""
        return all(r.finished for r in self._registry if not r.disqualified)

    def check_completion(self) -> bool:
        """Stop the race if it is running and nobody is left to finish.

        Returns:
            True if this call stopped the race
        """
        if not self._state.status.accepts_progress:
            return False
        if not self.all_finished():
            return False
        self._phase.stop()
        logger.info("[RACE] All racers finished. Race stopped.")
        return True
