"""Monster instance component."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Set

from .position import Position
from .stats import StatModifiers


@dataclass
class MonsterInstance(StatModifiers):
    """A spawned monster that attack and debuff skills can target."""

    id: int
    name: str
    level: int = 1
    defense: int = 0
    current_health: int = 100
    max_health: int = 100
    position: Position = field(default_factory=lambda: Position(0.0, 0.0))
    strength: int = 0
    intelligence: int = 0
    dexterity: int = 0
    vitality: int = 0
    attack_power: int = 0
    magic_power: int = 0
    # Debuffs currently folded into the stats above.
    applied_buff_ids: Set[int] = field(default_factory=set)

    @property
    def is_alive(self) -> bool:
        return self.current_health > 0

    def take_damage(self, amount: int) -> int:
        """Apply ``amount`` damage and return the damage actually absorbed."""

        if amount <= 0 or not self.is_alive:
            return 0
        actual = min(amount, self.current_health)
        self.current_health -= actual
        return actual


__all__ = ["MonsterInstance"]
