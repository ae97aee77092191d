"""Active buff ledger: apply, persist, expire and remove timed stat modifiers."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from ...core.components.character import Character
from ...core.components.monster import MonsterInstance
from ...core.components.stats import StatKind
from ...core.locks import CHARACTER, MONSTER, LockKey, LockRegistry, character_key, monster_key
from ...persistence.interfaces import (
    CharacterStore,
    MonsterRegistry,
    SkillPersistence,
    log_failed_write,
    try_write,
)
from ...skills.templates import SkillTemplate

logger = logging.getLogger(__name__)

Buffable = Union[Character, MonsterInstance]


class BuffStacking(Enum):
    """What happens when a skill's buff lands on a target already carrying it."""

    STACK = "stack"
    REFRESH = "refresh"


@dataclass
class ActiveBuff:
    """One timed stat modifier currently affecting a character or monster."""

    buff_id: int
    skill_id: int
    skill_name: str
    caster_id: int
    affected_stat: StatKind
    stat_boost: int
    remaining_duration: float
    buff_name: str = ""
    buff_type: str = "buff"
    effect_type: str = ""
    duration: float = 0.0
    application_time: float = 0.0
    is_active: bool = True


class BuffLedger:
    """Per-entity index of active buffs.

    The ledger owns the stat side effects: a buff's magnitude is folded into
    the character or monster when applied and reversed exactly once when it
    expires or is removed. Entries are keyed by the entity's lock key. Only
    character buffs are persisted; monster debuffs live in memory.
    """

    def __init__(
        self,
        characters: CharacterStore,
        persistence: SkillPersistence,
        locks: LockRegistry | None = None,
        stacking: BuffStacking = BuffStacking.STACK,
        persist_interval: int = 5,
        monsters: MonsterRegistry | None = None,
    ) -> None:
        self.characters = characters
        self.persistence = persistence
        self.locks = locks or LockRegistry()
        self.stacking = stacking
        self.persist_interval = persist_interval
        self.monsters = monsters
        self._buffs: Dict[LockKey, List[ActiveBuff]] = {}
        self._next_id = 1
        self._guard = threading.Lock()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _allocate_id(self) -> int:
        with self._guard:
            buff_id = self._next_id
            self._next_id += 1
            return buff_id

    @staticmethod
    def _key_for(target: Buffable) -> LockKey:
        if isinstance(target, MonsterInstance):
            return monster_key(target.id)
        return character_key(target.id)

    def _entity(self, key: LockKey) -> Optional[Any]:
        kind, entity_id = key
        if kind == MONSTER:
            return self.monsters.get(entity_id) if self.monsters is not None else None
        return self.characters.get(entity_id)

    def _persist_character(self, character: Character) -> bool:
        return log_failed_write(try_write("update_character", self.characters.update, character), logger)

    def _persist_remaining(self, buff: ActiveBuff, remaining: float) -> bool:
        return log_failed_write(
            try_write("update_buff_expiration", self.persistence.update_buff_expiration, buff.buff_id, remaining),
            logger,
        )

    def _crossed_persist_boundary(self, before: float, after: float) -> bool:
        if self.persist_interval <= 0:
            return False
        return math.floor(after / self.persist_interval) < math.floor(before / self.persist_interval)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def buffs_on(self, key: LockKey) -> List[ActiveBuff]:
        with self._guard:
            return list(self._buffs.get(key, []))

    def active_buffs(self, character_id: int) -> List[ActiveBuff]:
        return self.buffs_on(character_key(character_id))

    def monster_buffs(self, monster_id: int) -> List[ActiveBuff]:
        return self.buffs_on(monster_key(monster_id))

    def characters_with_buffs(self) -> List[int]:
        with self._guard:
            return [entity_id for kind, entity_id in self._buffs if kind == CHARACTER]

    def __contains__(self, character_id: object) -> bool:
        return (CHARACTER, character_id) in self._buffs

    # ------------------------------------------------------------------
    # Apply / remove
    # ------------------------------------------------------------------
    def apply(
        self,
        caster: Character,
        target: Buffable,
        template: SkillTemplate,
        now: float = 0.0,
    ) -> ActiveBuff:
        """Apply ``template``'s modifier from ``caster`` to ``target``."""

        if template.effect_target is None:
            raise ValueError(f"Skill {template.id} has no effect_target")

        key = self._key_for(target)
        persisted = key[0] == CHARACTER
        with self.locks.hold([key]):
            if self.stacking is BuffStacking.REFRESH:
                for existing in self.buffs_on(key):
                    if existing.skill_id == template.id and existing.is_active:
                        existing.remaining_duration = template.effect_duration
                        existing.application_time = now
                        if persisted:
                            self._persist_remaining(existing, existing.remaining_duration)
                        logger.info("%s refreshed on %s for %ss", template.name, target.name, template.effect_duration)
                        return existing

            buff = ActiveBuff(
                buff_id=self._allocate_id(),
                skill_id=template.id,
                skill_name=template.name,
                caster_id=caster.id,
                affected_stat=template.effect_target,
                stat_boost=template.effect_value,
                remaining_duration=template.effect_duration,
                buff_name=template.name,
                buff_type=template.skill_type.value,
                effect_type=template.effect_type,
                duration=template.effect_duration,
                application_time=now,
            )
            target.apply_modifier(buff.buff_id, buff.affected_stat, buff.stat_boost)
            with self._guard:
                self._buffs.setdefault(key, []).append(buff)

            if persisted:
                log_failed_write(
                    try_write("save_active_buff", self.persistence.save_active_buff, target.id, buff),
                    logger,
                )
                self._persist_character(target)

        logger.info("%s applied to %s for %ss", template.name, target.name, template.effect_duration)
        return buff

    def _expire(self, key: LockKey, buff: ActiveBuff) -> None:
        """Deactivate ``buff`` and reverse its stat effect. Caller holds the lock."""

        buff.is_active = False
        kind, entity_id = key
        entity = self._entity(key)
        if entity is not None:
            entity.remove_modifier(buff.buff_id, buff.affected_stat, buff.stat_boost)
            if kind == CHARACTER:
                self._persist_character(entity)
            logger.info("Buff %s expired on %s", buff.buff_name, entity.name)
        else:
            logger.warning("Buff %s expired on unknown %s %s", buff.buff_id, kind, entity_id)
        if kind == CHARACTER:
            self._persist_remaining(buff, 0)

    def _drop_if_empty(self, key: LockKey) -> None:
        with self._guard:
            if not self._buffs.get(key):
                self._buffs.pop(key, None)

    def remove(self, character_id: int, buff_id: int) -> bool:
        """Remove one buff from a character early (dispel).

        Returns ``False`` if not found.
        """

        return self._remove(character_key(character_id), buff_id)

    def remove_from_monster(self, monster_id: int, buff_id: int) -> bool:
        return self._remove(monster_key(monster_id), buff_id)

    def _remove(self, key: LockKey, buff_id: int) -> bool:
        with self.locks.hold([key]):
            with self._guard:
                buffs = self._buffs.get(key, [])
                buff = find_buff(buffs, buff_id)
                if buff is None:
                    return False
                buffs.remove(buff)
            self._expire(key, buff)
            self._drop_if_empty(key)
        return True

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def tick(self, delta_time: float) -> List[ActiveBuff]:
        """Advance every buff by ``delta_time`` seconds.

        Returns the buffs that expired during this tick.
        """

        with self._guard:
            keys = list(self._buffs)

        expired: List[ActiveBuff] = []
        for key in keys:
            with self.locks.hold([key]):
                for buff in self.buffs_on(key):
                    before = buff.remaining_duration
                    buff.remaining_duration = before - delta_time
                    if buff.remaining_duration <= 0:
                        with self._guard:
                            self._buffs.get(key, []).remove(buff)
                        self._expire(key, buff)
                        expired.append(buff)
                    elif key[0] == CHARACTER and self._crossed_persist_boundary(before, buff.remaining_duration):
                        self._persist_remaining(buff, buff.remaining_duration)
                self._drop_if_empty(key)
        return expired

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------
    def restore(self, characters: Iterable[Character] | None = None) -> int:
        """Load persisted active buffs and fold them into their characters.

        Returns the number of buffs restored.
        """

        if characters is None:
            characters = self.characters.get_all()

        restored = 0
        highest = 0
        for character in characters:
            try:
                buffs = self.persistence.load_active_buffs(character.id)
            except Exception as exc:
                logger.warning("Error loading active buffs for %s: %s", character.id, exc)
                continue
            if not buffs:
                continue
            key = character_key(character.id)
            with self.locks.hold([key]):
                changed = False
                with self._guard:
                    known = {b.buff_id for b in self._buffs.get(key, [])}
                for buff in buffs:
                    highest = max(highest, buff.buff_id)
                    if buff.buff_id in known or not buff.is_active:
                        continue
                    with self._guard:
                        self._buffs.setdefault(key, []).append(buff)
                    changed |= character.apply_modifier(buff.buff_id, buff.affected_stat, buff.stat_boost)
                    restored += 1
                if changed:
                    self._persist_character(character)
            logger.info("Loaded %d active buffs for character %s", len(buffs), character.id)

        with self._guard:
            self._next_id = max(self._next_id, highest + 1)
        return restored


def find_buff(buffs: Iterable[ActiveBuff], buff_id: int) -> Optional[ActiveBuff]:
    return next((b for b in buffs if b.buff_id == buff_id), None)


__all__ = ["ActiveBuff", "Buffable", "BuffStacking", "BuffLedger", "find_buff"]
