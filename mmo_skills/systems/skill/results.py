"""Cast outcome values handed to the broadcast layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .buffs import ActiveBuff


class FailReason(str, Enum):
    """Tagged reasons a cast is rejected."""

    CASTER_NOT_FOUND = "CASTER_NOT_FOUND"
    SKILL_NOT_FOUND = "SKILL_NOT_FOUND"
    CASTER_DEAD = "CASTER_DEAD"
    SKILL_NOT_LEARNED = "SKILL_NOT_LEARNED"
    INSUFFICIENT_MANA = "INSUFFICIENT_MANA"
    INSUFFICIENT_HEALTH = "INSUFFICIENT_HEALTH"
    ON_COOLDOWN = "ON_COOLDOWN"
    TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


MONSTER = "monster"
PLAYER = "player"


@dataclass
class SkillTargetResult:
    """What one cast did to one entity."""

    target_id: int
    target_name: str
    target_type: str
    damage: int = 0
    heal: int = 0
    is_critical: bool = False
    is_miss: bool = False
    remaining_health: int = 0
    died: bool = False
    applied_buffs: List["ActiveBuff"] = field(default_factory=list)


@dataclass
class SkillCastResult:
    """Outcome of one cast request."""

    skill_id: int
    success: bool
    caster_id: int = 0
    caster_name: str = ""
    caster_type: str = PLAYER
    skill_name: str = ""
    fail_reason: Optional[FailReason] = None
    cast_time: float = 0.0
    target_results: List[SkillTargetResult] = field(default_factory=list)


def fail_result(caster_id: int, skill_id: int, reason: FailReason) -> SkillCastResult:
    return SkillCastResult(
        skill_id=skill_id,
        success=False,
        caster_id=caster_id,
        fail_reason=reason,
    )


__all__ = [
    "FailReason",
    "SkillTargetResult",
    "SkillCastResult",
    "fail_result",
    "MONSTER",
    "PLAYER",
]
