"""Standings order shared by results, snapshots and time propagation."""

from __future__ import annotations

import math
from collections.abc import Iterable

from icekart.race.models import Racer


def ranking_key(racer: Racer) -> tuple[int, int, float]:
    """Sort key: most laps, then most checkpoints, then lowest total time.

    A racer with no recorded time (0) sorts after every timed racer at the
    same position.
    """
    total = racer.total_time or math.inf
    return (-racer.laps, -racer.checkpoints, total)


def rank_active(racers: Iterable[Racer]) -> list[Racer]:
    """Non-disqualified racers in standings order (stable for equal keys)."""
    return sorted((r for r in racers if not r.disqualified), key=ranking_key)


def results(racers: Iterable[Racer]) -> list[Racer]:
    """Ranked active racers followed by disqualified racers in registration order."""
    pool = list(racers)
    return rank_active(pool) + [r for r in pool if r.disqualified]
