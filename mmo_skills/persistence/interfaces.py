"""Collaborator interfaces the skill engine reads and writes through."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Optional

if TYPE_CHECKING:
    from ..core.components.character import Character
    from ..core.components.monster import MonsterInstance
    from ..systems.skill.buffs import ActiveBuff
    from ..systems.skill.learning import LearnedSkillRecord

logger = logging.getLogger(__name__)


class CharacterStore(ABC):
    """Lookup and durable update of player characters."""

    @abstractmethod
    def get(self, character_id: int) -> Optional["Character"]:
        raise NotImplementedError

    @abstractmethod
    def update(self, character: "Character") -> None:
        raise NotImplementedError

    @abstractmethod
    def get_all(self) -> List["Character"]:
        raise NotImplementedError


class MonsterRegistry(ABC):
    """Live monster instances in the world."""

    @abstractmethod
    def get(self, monster_id: int) -> Optional["MonsterInstance"]:
        raise NotImplementedError

    @abstractmethod
    def get_alive_monsters(self) -> List["MonsterInstance"]:
        raise NotImplementedError


class PlayerDirectory(ABC):
    """Resolve connected characters for heal and buff targeting."""

    @abstractmethod
    def get_player(self, character_id: int) -> Optional["Character"]:
        raise NotImplementedError


class SkillPersistence(ABC):
    """Durable storage for learned skills, active buffs and the cast audit."""

    @abstractmethod
    def save_learned_skill(self, record: "LearnedSkillRecord") -> None:
        raise NotImplementedError

    @abstractmethod
    def load_learned_skills(self, character_id: int) -> List["LearnedSkillRecord"]:
        raise NotImplementedError

    @abstractmethod
    def save_active_buff(self, character_id: int, buff: "ActiveBuff") -> None:
        raise NotImplementedError

    @abstractmethod
    def update_buff_expiration(self, buff_id: int, remaining: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def load_active_buffs(self, character_id: int) -> List["ActiveBuff"]:
        raise NotImplementedError

    @abstractmethod
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
        """Record one resolved target for auditing. Best effort."""
        raise NotImplementedError


@dataclass
class WriteResult:
    """Outcome of one best-effort persistence write."""

    operation: str
    ok: bool = True
    error: Optional[BaseException] = None


def try_write(operation: str, fn: Callable[..., Any], *args: Any) -> WriteResult:
    """Call ``fn(*args)`` and capture any failure as a :class:`WriteResult`."""

    try:
        fn(*args)
    except Exception as exc:
        return WriteResult(operation, ok=False, error=exc)
    return WriteResult(operation)


def log_failed_write(result: WriteResult, log: logging.Logger | None = None) -> bool:
    """Log ``result`` at WARNING if it failed; return ``result.ok``."""

    if not result.ok:
        (log or logger).warning("Persistence write %s failed: %s", result.operation, result.error)
    return result.ok


__all__ = [
    "CharacterStore",
    "MonsterRegistry",
    "PlayerDirectory",
    "SkillPersistence",
    "WriteResult",
    "try_write",
    "log_failed_write",
]
