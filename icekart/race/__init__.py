"""Race state machine: racers, phase, progress, gaps and finish detection."""

from icekart.race.models import UNARMED, LapRecord, Racer, RaceState, RaceStatus

__all__ = [
    "UNARMED",
    "LapRecord",
    "RaceState",
    "RaceStatus",
    "Racer",
]
