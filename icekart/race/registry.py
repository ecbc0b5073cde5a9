"""Racer registry: identity and lookup for registered racers."""

from __future__ import annotations

import uuid
from collections.abc import Iterator

from loguru import logger

from icekart.race.errors import DuplicateRacer, InvalidRacerName
from icekart.race.models import Racer


class RacerRegistry:
    """Registered racers, kept in registration order and unique by name."""

    def __init__(self) -> None:
        self._racers: dict[str, Racer] = {}

    def __iter__(self) -> Iterator[Racer]:
        return iter(list(self._racers.values()))

    def __len__(self) -> int:
        return len(self._racers)

    def __contains__(self, racer_id: object) -> bool:
        return racer_id in self._racers

    def get(self, racer_id: str) -> Racer | None:
        return self._racers.get(racer_id)

    def find_by_name(self, name: str) -> Racer | None:
        for racer in self._racers.values():
            if racer.name == name:
                return racer
        return None

    def register(self, name: str | None, avatar: str = "") -> Racer:
        """Create a racer with zeroed progress.

        Args:
            name: Display name, unique among registered racers
            avatar: Optional display avatar

        Returns:
            The new racer

        Raises:
            InvalidRacerName: If the name is missing or blank
            DuplicateRacer: If a racer with this name is already registered
        """
        cleaned = (name or "").strip()
        if not cleaned:
            raise InvalidRacerName()
        if self.find_by_name(cleaned) is not None:
            logger.warning(f"[RACER] Registration failed: {cleaned} already exists")
            raise DuplicateRacer(cleaned)

        racer = Racer(id=f"r{uuid.uuid4().hex[:12]}", name=cleaned, avatar=avatar)
        self._racers[racer.id] = racer
        logger.info(f"[RACER] Added {racer.name} (id={racer.id})")
        return racer

    def remove(self, id_or_name: str) -> Racer | None:
        """Delete a racer by id, falling back to name. Unknown keys are ignored."""
        racer = self._racers.get(id_or_name) or self.find_by_name(id_or_name)
        if racer is None:
            logger.debug(f"[RACER] Remove ignored: no racer '{id_or_name}'")
            return None
        del self._racers[racer.id]
        logger.info(f"[RACER] Removed {racer.name}")
        return racer
