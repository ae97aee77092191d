"""Player character component."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Set

from .position import Position
from .stats import StatModifiers


@dataclass
class Character(StatModifiers):
    """Persistent state of a player character relevant to skill resolution."""

    id: int
    name: str
    class_name: str = ""
    level: int = 1
    health: int = 100
    max_health: int = 100
    mana: int = 100
    max_mana: int = 100
    strength: int = 10
    intelligence: int = 10
    dexterity: int = 10
    vitality: int = 10
    defense: int = 0
    attack_power: int = 0
    magic_power: int = 0
    position: Position = field(default_factory=lambda: Position(0.0, 0.0))
    is_dead: bool = False
    # Ids of buffs whose magnitude is currently folded into the stats above.
    applied_buff_ids: Set[int] = field(default_factory=set)

    def recalculate_stats(self) -> None:
        """Keep resource pools consistent with their maxima."""

        self.health = max(0, min(self.health, self.max_health))
        self.mana = max(0, min(self.mana, self.max_mana))


__all__ = ["Character"]
