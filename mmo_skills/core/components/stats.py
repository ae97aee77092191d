"""Buffable stats of characters and monsters and their field accessors."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Set


class StatKind(Enum):
    """Enumerate the stats a buff or debuff may modify."""

    STRENGTH = "strength"
    INTELLIGENCE = "intelligence"
    DEXTERITY = "dexterity"
    VITALITY = "vitality"
    DEFENSE = "defense"
    ATTACK_POWER = "attack_power"
    MAGIC_POWER = "magic_power"

    @classmethod
    def parse(cls, key: str) -> "StatKind":
        """Return the stat named by ``key`` (short aliases accepted).

        Raises :class:`ValueError` for unknown keys.
        """

        norm = str(key).strip().lower()
        kind = _ALIASES.get(norm)
        if kind is None:
            raise ValueError(f"Unknown stat key: {key!r}")
        return kind


_ALIASES: Dict[str, StatKind] = {
    "str": StatKind.STRENGTH,
    "strength": StatKind.STRENGTH,
    "int": StatKind.INTELLIGENCE,
    "intelligence": StatKind.INTELLIGENCE,
    "dex": StatKind.DEXTERITY,
    "dexterity": StatKind.DEXTERITY,
    "vit": StatKind.VITALITY,
    "vitality": StatKind.VITALITY,
    "def": StatKind.DEFENSE,
    "defense": StatKind.DEFENSE,
    "atk": StatKind.ATTACK_POWER,
    "attackpower": StatKind.ATTACK_POWER,
    "attack_power": StatKind.ATTACK_POWER,
    "matk": StatKind.MAGIC_POWER,
    "magicpower": StatKind.MAGIC_POWER,
    "magic_power": StatKind.MAGIC_POWER,
}

# Entity attribute backing each stat.
STAT_FIELDS: Dict[StatKind, str] = {kind: kind.value for kind in StatKind}


def get_stat(entity: Any, kind: StatKind) -> int:
    """Return the current value of ``kind`` on ``entity``."""

    return getattr(entity, STAT_FIELDS[kind])


def adjust_stat(entity: Any, kind: StatKind, delta: int) -> int:
    """Add ``delta`` to ``kind`` on ``entity`` and return the new value."""

    field_name = STAT_FIELDS[kind]
    value = getattr(entity, field_name) + delta
    setattr(entity, field_name, value)
    return value


class StatModifiers:
    """Once-per-buff stat modifier bookkeeping for characters and monsters.

    Hosts carry an ``applied_buff_ids`` set holding the ids of buffs whose
    magnitude is currently folded into their stats.
    """

    applied_buff_ids: Set[int]

    def apply_modifier(self, buff_id: int, stat: StatKind, magnitude: int) -> bool:
        """Fold ``magnitude`` into ``stat`` once per ``buff_id``.

        Returns ``False`` without touching stats if the buff is already applied.
        """

        if buff_id in self.applied_buff_ids:
            return False
        adjust_stat(self, stat, magnitude)
        self.applied_buff_ids.add(buff_id)
        self.recalculate_stats()
        return True

    def remove_modifier(self, buff_id: int, stat: StatKind, magnitude: int) -> bool:
        """Reverse a modifier previously applied for ``buff_id``.

        Returns ``False`` if the buff is not currently applied.
        """

        if buff_id not in self.applied_buff_ids:
            return False
        adjust_stat(self, stat, -magnitude)
        self.applied_buff_ids.discard(buff_id)
        self.recalculate_stats()
        return True

    def recalculate_stats(self) -> None:
        pass


__all__ = ["StatKind", "StatModifiers", "STAT_FIELDS", "get_stat", "adjust_stat"]
