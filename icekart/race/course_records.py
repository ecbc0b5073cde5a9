"""Course records: the fastest elapsed time seen at each (lap, checkpoint) position.

Gaps are measured against these records rather than against the current
leader, so a racer's gap means "behind the best time anyone has posted at
this exact point of the race".
"""

from __future__ import annotations

from icekart.race.models import Racer

Position = tuple[int, int]


class CourseRecordTracker:
    def __init__(self) -> None:
        self._records: dict[Position, int] = {}

    def __len__(self) -> int:
        return len(self._records)

    def record_at(self, laps: int, checkpoints: int) -> int | None:
        return self._records.get((laps, checkpoints))

    def apply(self, racer: Racer) -> int:
        """Fold the racer's time into the record at its position and set its gap.

        Records only ever decrease, and the racer's own time is never changed,
        so the resulting gap is always >= 0.

        Returns:
            The racer's new gap in milliseconds
        """
        key = (racer.laps, racer.checkpoints)
        record = self._records.get(key)
        if record is None or racer.total_time < record:
            record = racer.total_time
            self._records[key] = record
        racer.gap = racer.total_time - record
        return racer.gap

    def clear(self) -> None:
        self._records.clear()
