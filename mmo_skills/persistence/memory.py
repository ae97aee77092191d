"""In-process implementations of the persistence collaborators."""

from __future__ import annotations

import copy
import threading
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Set

from .event_log import BUFF_EXPIRED, SKILL_CAST, SKILL_LEARNED, EventLog, append_event
from .interfaces import CharacterStore, MonsterRegistry, PlayerDirectory, SkillPersistence

if TYPE_CHECKING:
    from ..core.components.character import Character
    from ..core.components.monster import MonsterInstance
    from ..systems.skill.buffs import ActiveBuff
    from ..systems.skill.learning import LearnedSkillRecord


class InMemoryCharacterStore(CharacterStore):
    """Live character objects plus a deep-copied "saved" snapshot per id."""

    def __init__(self, characters: Iterable["Character"] = ()) -> None:
        self._live: Dict[int, "Character"] = {}
        self.saved: Dict[int, "Character"] = {}
        self.update_count = 0
        for character in characters:
            self.add(character)

    def add(self, character: "Character") -> None:
        self._live[character.id] = character
        self.saved[character.id] = copy.deepcopy(character)

    def get(self, character_id: int) -> Optional["Character"]:
        return self._live.get(character_id)

    def update(self, character: "Character") -> None:
        self.saved[character.id] = copy.deepcopy(character)
        self.update_count += 1

    def get_all(self) -> List["Character"]:
        return list(self._live.values())


class InMemoryMonsterRegistry(MonsterRegistry):
    """Monsters keyed by id, scanned in spawn order."""

    def __init__(self, monsters: Iterable["MonsterInstance"] = ()) -> None:
        self._monsters: Dict[int, "MonsterInstance"] = {}
        for monster in monsters:
            self.spawn(monster)

    def spawn(self, monster: "MonsterInstance") -> None:
        self._monsters[monster.id] = monster

    def despawn(self, monster_id: int) -> None:
        self._monsters.pop(monster_id, None)

    def get(self, monster_id: int) -> Optional["MonsterInstance"]:
        return self._monsters.get(monster_id)

    def get_alive_monsters(self) -> List["MonsterInstance"]:
        return [m for m in self._monsters.values() if m.is_alive]


class SessionRegistry(PlayerDirectory):
    """Track which characters are currently connected."""

    def __init__(self, characters: CharacterStore) -> None:
        self.characters = characters
        self._connected: Set[int] = set()
        self._lock = threading.Lock()

    def connect(self, character_id: int) -> None:
        with self._lock:
            self._connected.add(character_id)

    def disconnect(self, character_id: int) -> None:
        with self._lock:
            self._connected.discard(character_id)

    def is_connected(self, character_id: int) -> bool:
        return character_id in self._connected

    def get_player(self, character_id: int) -> Optional["Character"]:
        if character_id not in self._connected:
            return None
        return self.characters.get(character_id)


class InMemorySkillPersistence(SkillPersistence):
    """Store skill records in dictionaries and audit to an event log.

    ``audit`` may be a path, an :class:`EventLog` or a list; ``clock`` supplies
    the tick stamped on audit events.
    """

    def __init__(
        self,
        audit: str | Path | EventLog | List[Dict[str, Any]] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._learned: Dict[int, Dict[int, "LearnedSkillRecord"]] = {}
        self._buffs: Dict[int, "ActiveBuff"] = {}
        self._buff_owner: Dict[int, int] = {}
        self._lock = threading.Lock()
        self.audit = audit.path if isinstance(audit, EventLog) else audit
        self.clock = clock or (lambda: 0)

    def _audit(self, event_type: str, data: Dict[str, Any]) -> None:
        if self.audit is not None:
            append_event(self.audit, self.clock(), event_type, data)

    # ------------------------------------------------------------------
    # Learned skills
    # ------------------------------------------------------------------
    def save_learned_skill(self, record: "LearnedSkillRecord") -> None:
        with self._lock:
            is_new = record.skill_id not in self._learned.get(record.character_id, {})
            self._learned.setdefault(record.character_id, {})[record.skill_id] = replace(record)
        if is_new:
            self._audit(
                SKILL_LEARNED,
                {"character": record.character_id, "skill": record.skill_id},
            )

    def load_learned_skills(self, character_id: int) -> List["LearnedSkillRecord"]:
        with self._lock:
            return [replace(r) for r in self._learned.get(character_id, {}).values()]

    # ------------------------------------------------------------------
    # Buffs
    # ------------------------------------------------------------------
    def save_active_buff(self, character_id: int, buff: "ActiveBuff") -> None:
        with self._lock:
            self._buffs[buff.buff_id] = replace(buff)
            self._buff_owner[buff.buff_id] = character_id

    def update_buff_expiration(self, buff_id: int, remaining: float) -> None:
        with self._lock:
            buff = self._buffs.get(buff_id)
            if buff is None:
                return
            buff.remaining_duration = remaining
            if remaining <= 0:
                buff.is_active = False
                owner = self._buff_owner.get(buff_id)
            else:
                owner = None
        if owner is not None:
            self._audit(BUFF_EXPIRED, {"character": owner, "buff": buff_id})

    def load_active_buffs(self, character_id: int) -> List["ActiveBuff"]:
        with self._lock:
            return [
                replace(buff)
                for buff_id, buff in self._buffs.items()
                if self._buff_owner.get(buff_id) == character_id
                and buff.is_active
                and buff.remaining_duration > 0
            ]

    def stored_buff(self, buff_id: int) -> Optional["ActiveBuff"]:
        """Return the persisted copy of ``buff_id`` (for inspection)."""

        with self._lock:
            buff = self._buffs.get(buff_id)
            return replace(buff) if buff is not None else None

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------
    def log_skill_cast(
        self,
        caster_id: int,
        skill_id: int,
        target_id: int,
        target_name: str,
        success: bool,
        damage: int,
        heal: int,
        critical: bool,
        missed: bool,
    ) -> None:
        self._audit(
            SKILL_CAST,
            {
                "caster": caster_id,
                "skill": skill_id,
                "target": target_id,
                "target_name": target_name,
                "success": success,
                "damage": damage,
                "heal": heal,
                "critical": critical,
                "missed": missed,
            },
        )


__all__ = [
    "InMemoryCharacterStore",
    "InMemoryMonsterRegistry",
    "SessionRegistry",
    "InMemorySkillPersistence",
]
