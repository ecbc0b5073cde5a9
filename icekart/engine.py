"""Race engine: the single owner of race state.

Every inbound event, from the WebSocket or the HTTP boundary, is applied by one
``RaceEngine`` method that runs to completion without awaiting, so events
never interleave. Each state change is handed to the ``StatePublisher``:
operator actions publish a full ``init`` snapshot, everything else an
``update``.
"""

from __future__ import annotations

from loguru import logger

from icekart.core.settings import Settings
from icekart.race.clock import Clock, system_clock
from icekart.race.course_records import CourseRecordTracker
from icekart.race.errors import InvalidPhaseTransition
from icekart.race.finish import FinishDetector
from icekart.race.models import Racer, RaceState, RaceStatus
from icekart.race.phase import PhaseController
from icekart.race.progress import ProgressProcessor
from icekart.race.registry import RacerRegistry
from icekart.race.standings import results
from icekart.realtime.messages import (
    ActionMessage,
    CheckpointMessage,
    DisqualifyMessage,
    InboundMessage,
    InitMessage,
    LapMessage,
    RegisterMessage,
    RemoveMessage,
    UpdateMessage,
)
from icekart.realtime.publisher import StatePublisher


class RaceEngine:
    def __init__(
        self,
        *,
        total_laps: int,
        checkpoints_per_lap: int,
        warmup_arming: bool = True,
        publisher: StatePublisher | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self.state = RaceState(total_laps=total_laps, checkpoints_per_lap=checkpoints_per_lap)
        self.registry = RacerRegistry()
        self.records = CourseRecordTracker()
        self.publisher = publisher or StatePublisher()
        self.phase = PhaseController(self.state, self.registry, self.records, clock)
        self.finish = FinishDetector(self.state, self.registry, self.phase)
        self.progress = ProgressProcessor(
            self.state,
            self.registry,
            self.records,
            self.finish,
            clock,
            warmup_arming=warmup_arming,
        )

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = system_clock) -> RaceEngine:
        return cls(
            total_laps=settings.total_laps,
            checkpoints_per_lap=settings.checkpoints_per_lap,
            warmup_arming=settings.warmup_arming,
            publisher=StatePublisher(queue_size=settings.subscriber_queue_size),
            clock=clock,
        )

    @property
    def status(self) -> RaceStatus:
        return self.state.status

    @property
    def racers(self) -> list[Racer]:
        return list(self.registry)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> InitMessage:
        return InitMessage.build(self.state, self.racers)

    def update(self) -> UpdateMessage:
        return UpdateMessage.build(self.state, self.racers)

    def results(self) -> list[Racer]:
        """Ranked active racers, then disqualified racers."""
        return results(self.registry)

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def action(self, name: str) -> bool:
        """Apply ``start``, ``stop`` or ``reset`` and publish a full snapshot.

        An action the phase table does not allow from the current phase is
        ignored. The snapshot is published either way so every display
        resynchronises after an operator action.

        Returns:
            True if the action was applied
        """
        logger.info(f"[ACTION] {name.upper()}")
        handlers = {
            "start": self.phase.start,
            "stop": self.phase.stop,
            "reset": self.phase.reset,
        }
        handler = handlers.get(name)
        applied = False
        if handler is None:
            logger.warning(f"[ACTION] Unknown action '{name}' ignored")
        else:
            try:
                handler()
            except InvalidPhaseTransition as e:
                logger.warning(f"[ACTION] {name} ignored: {e}")
            else:
                applied = True
        self.publisher.publish(self.snapshot().to_wire())
        return applied

    def start(self) -> bool:
        return self.action("start")

    def stop(self) -> bool:
        return self.action("stop")

    def reset(self) -> bool:
        return self.action("reset")

    # ------------------------------------------------------------------
    # Progress events
    # ------------------------------------------------------------------

    def lap(self, racer_id: str) -> bool:
        return self._published(self.progress.complete_lap(racer_id))

    def checkpoint(self, racer_id: str) -> bool:
        return self._published(self.progress.checkpoint(racer_id))

    # ------------------------------------------------------------------
    # Racer management
    # ------------------------------------------------------------------

    def register(self, name: str | None, avatar: str = "") -> Racer:
        """Register a racer and publish an update.

        Raises:
            InvalidRacerName: If the name is missing or blank
            DuplicateRacer: If the name is taken
        """
        racer = self.registry.register(name, avatar=avatar)
        self._published(True)
        return racer

    def disqualify(self, racer_id: str) -> bool:
        """Toggle a racer's disqualification. Unknown ids are ignored."""
        racer = self.registry.get(racer_id)
        if racer is None:
            logger.debug(f"[DQ] Ignored: unknown racer {racer_id}")
            return False
        disqualified = racer.toggle_disqualified()
        logger.info(f"[DQ] {racer.name} {'DISQUALIFIED' if disqualified else 'RESTORED'}")
        self._settle_finishing()
        return self._published(True)

    def remove(self, id_or_name: str) -> bool:
        """Delete a racer by id or name. Unknown keys are ignored."""
        if self.registry.remove(id_or_name) is None:
            return False
        self._settle_finishing()
        return self._published(True)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, message: InboundMessage) -> bool:
        """Apply one parsed inbound message.

        Raises:
            RegistrationError: If a ``register`` message is rejected
        """
        if isinstance(message, ActionMessage):
            return self.action(message.payload)
        if isinstance(message, LapMessage):
            return self.lap(message.racer_id)
        if isinstance(message, CheckpointMessage):
            return self.checkpoint(message.racer_id)
        if isinstance(message, DisqualifyMessage):
            return self.disqualify(message.racer_id)
        if isinstance(message, RemoveMessage):
            return self.remove(message.name)
        if isinstance(message, RegisterMessage):
            self.register(message.name)
            return True
        raise TypeError(f"Unsupported message: {type(message).__name__}")

    def _settle_finishing(self) -> None:
        # Losing the last unfinished racer during the grace lap ends the race
        if self.state.status == RaceStatus.FINISHING:
            self.finish.check_completion()

    def _published(self, changed: bool) -> bool:
        if changed:
            self.publisher.publish(self.update().to_wire())
        return changed
