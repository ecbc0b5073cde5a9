"""Lap and checkpoint processing.

Triggers arrive from several independent sources with no ordering guarantee
between racers, so the processor repairs ordering after the fact: after every
checkpoint, racers ranked behind the triggering racer are pulled forward so
that nobody behind shows a smaller elapsed time than somebody ahead.
"""

from __future__ import annotations

from loguru import logger

from icekart.race.clock import Clock
from icekart.race.course_records import CourseRecordTracker
from icekart.race.finish import FinishDetector
from icekart.race.models import LapRecord, RaceState, Racer
from icekart.race.registry import RacerRegistry
from icekart.race.standings import rank_active


def _seconds(ms: int) -> str:
    return f"{ms / 1000:.2f}s"


class ProgressProcessor:
    """Applies lap and checkpoint triggers to racer progress.

    Args:
        state: The race being run
        registry: Registered racers
        records: Course records used for gaps
        finish: Finish detector run after every lap completion
        clock: Millisecond clock
        warmup_arming: When True, a racer's first start-line trigger (a lap
            trigger, or the first checkpoint) only starts that racer's lap
            timing. When False, every racer is timed from the race start.
    """

    def __init__(
        self,
        state: RaceState,
        registry: RacerRegistry,
        records: CourseRecordTracker,
        finish: FinishDetector,
        clock: Clock,
        *,
        warmup_arming: bool = True,
    ) -> None:
        self._state = state
        self._registry = registry
        self._records = records
        self._finish = finish
        self._clock = clock
        self.warmup_arming = warmup_arming

    def complete_lap(self, racer_id: str) -> bool:
        """Handle a lap trigger.

        Returns:
            True if the trigger changed race state, False if it was ignored
        """
        racer = self._accepting_racer(racer_id, "LAP")
        if racer is None:
            return False

        now = self._clock()
        if self._awaiting_arm(racer):
            self._arm(racer, now)
            logger.info(f"[LAP] {racer.name} armed lap timing (ignored warmup trigger)")
            return True

        self._advance_time(racer, now)
        self._finish_lap(racer, now, "completed")
        return True

    def checkpoint(self, racer_id: str) -> bool:
        """Handle a checkpoint trigger, completing the lap once enough checkpoints are in.

        Returns:
            True if the trigger changed race state, False if it was ignored
        """
        racer = self._accepting_racer(racer_id, "CHECKPOINT")
        if racer is None:
            return False

        now = self._clock()
        reference = self._lap_reference(racer)
        if reference is not None:
            racer.current_lap_splits.append(max(0, now - reference))

        racer.checkpoints += 1
        self._advance_time(racer, now)
        self._records.apply(racer)

        pulled = self.propagate_time(racer)

        required = 1 if self._awaiting_arm(racer) else self._state.checkpoints_per_lap
        pulled_msg = f" - updated times for: {', '.join(pulled)}" if pulled else ""
        logger.info(
            f"[CHECKPOINT] {racer.name} hit checkpoint {racer.checkpoints}/{required} "
            f"(total: {_seconds(racer.total_time)}, gap: +{_seconds(racer.gap)}){pulled_msg}"
        )

        if racer.checkpoints >= required:
            if self._awaiting_arm(racer):
                self._arm(racer, now)
                logger.info(f"[LAP] {racer.name} armed lap timing (ignored warmup checkpoint)")
            else:
                self._finish_lap(racer, now, "auto-completed")
        return True

    def propagate_time(self, racer: Racer) -> list[str]:
        """Pull racers ranked behind ``racer`` up to the running maximum elapsed time.

        The running maximum starts at ``racer.total_time`` and only ratchets
        forward. Finished racers keep their frozen time but still raise the
        running maximum.

        Returns:
            Names of racers whose time was raised
        """
        ranked = rank_active(self._registry)
        position = next((i for i, r in enumerate(ranked) if r.id == racer.id), None)
        if position is None:
            return []

        running_max = racer.total_time
        pulled: list[str] = []
        for lower in ranked[position + 1 :]:
            if lower.total_time < running_max and not lower.finished:
                lower.advance_total_time(running_max)
                self._records.apply(lower)
                pulled.append(lower.name)
            else:
                running_max = max(running_max, lower.total_time)
        return pulled

    def _accepting_racer(self, racer_id: str, tag: str) -> Racer | None:
        if not self._state.status.accepts_progress:
            logger.debug(f"[{tag}] Ignored for {racer_id}: race is {self._state.status}")
            return None
        racer = self._registry.get(racer_id)
        if racer is None:
            logger.debug(f"[{tag}] Ignored: unknown racer {racer_id}")
            return None
        if not racer.active:
            logger.debug(f"[{tag}] Ignored for {racer.name}: disqualified or finished")
            return None
        return racer

    def _awaiting_arm(self, racer: Racer) -> bool:
        return self.warmup_arming and not racer.armed and racer.laps == 0

    def _lap_reference(self, racer: Racer) -> int | None:
        """Timestamp the current lap is measured from."""
        if racer.armed:
            return racer.last_lap_timestamp
        return self._state.start_time

    def _advance_time(self, racer: Racer, now: int) -> None:
        racer.advance_total_time(self._state.elapsed(now))

    def _arm(self, racer: Racer, now: int) -> None:
        racer.last_lap_timestamp = now
        racer.checkpoints = 0
        racer.current_lap_splits = []
        self._advance_time(racer, now)
        self._records.apply(racer)

    def _finish_lap(self, racer: Racer, now: int, verb: str) -> None:
        reference = self._lap_reference(racer)
        lap_time = max(0, now - reference) if reference is not None else 0

        if racer.best_lap is None or lap_time < racer.best_lap:
            racer.best_lap = lap_time
        racer.history.append(
            LapRecord(
                lap_number=racer.laps + 1,
                lap_time=lap_time,
                splits=tuple(racer.current_lap_splits),
            )
        )

        racer.laps += 1
        racer.checkpoints = 0
        racer.current_lap_splits = []
        racer.last_lap_timestamp = now
        self._records.apply(racer)

        logger.info(
            f"[LAP] {racer.name} {verb} lap {racer.laps} (time: {_seconds(lap_time)}, "
            f"total: {_seconds(racer.total_time)}, gap: +{_seconds(racer.gap)})"
        )

        self._finish.on_lap_completed(racer)
