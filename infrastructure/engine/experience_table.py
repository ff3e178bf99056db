from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from domain.experience import level_progress_from_total, total_from_level_progress


@dataclass
class ExperienceBar:
    """A player's experience as the game stores it: whole levels plus progress."""

    level: int = 0
    progress: float = 0.0

    @property
    def total(self) -> int:
        return total_from_level_progress(self.level, self.progress)


class ExperienceBarTable:
    """
    `ExternalResource` over the experience bars of online players.

    Reads convert (level, progress) to a point total; writes go the other
    way. Players who are not connected are unreachable: reads return None
    and writes are dropped.
    """

    def __init__(self) -> None:
        self._bars: Dict[UUID, ExperienceBar] = {}

    def connect(self, player_id: UUID, bar: Optional[ExperienceBar] = None) -> ExperienceBar:
        self._bars[player_id] = bar or ExperienceBar()
        return self._bars[player_id]

    def disconnect(self, player_id: UUID) -> None:
        self._bars.pop(player_id, None)

    def is_online(self, player_id: UUID) -> bool:
        return player_id in self._bars

    def bar(self, player_id: UUID) -> Optional[ExperienceBar]:
        return self._bars.get(player_id)

    def add_points(self, player_id: UUID, points: int) -> None:
        """Host-side experience change, e.g. picking up an orb."""

        bar = self._bars.get(player_id)
        if bar is not None:
            self._set(bar, max(0, bar.total + points))

    def read_total(self, player_id: UUID) -> Optional[int]:
        bar = self._bars.get(player_id)
        if bar is None:
            return None
        return bar.total

    def write_total(self, player_id: UUID, total: int) -> None:
        bar = self._bars.get(player_id)
        if bar is not None:
            self._set(bar, total)

    @staticmethod
    def _set(bar: ExperienceBar, total: int) -> None:
        level, progress = level_progress_from_total(total)
        bar.level = level
        bar.progress = float(progress)
