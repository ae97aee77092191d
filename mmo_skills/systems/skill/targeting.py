"""Select the monsters an attack or debuff skill affects."""

from __future__ import annotations

from typing import AbstractSet, List, Optional

from ...core.components.character import Character
from ...core.components.monster import MonsterInstance
from ...core.components.position import Position
from ...core.geometry import DistanceFn, euclidean_distance
from ...core.targets import EntityTarget, PointTarget, Target
from ...persistence.interfaces import MonsterRegistry
from ...skills.templates import SkillTemplate, TargetKind


def area_centre(
    caster: Character,
    template: SkillTemplate,
    target: Target,
    monsters: MonsterRegistry,
) -> Optional[Position]:
    """Return the point an area attack is centred on, if it has one."""

    if template.target_type.is_untargeted:
        return caster.position if template.area_radius > 0 else None
    if isinstance(target, PointTarget):
        return target.position
    if isinstance(target, EntityTarget):
        primary = monsters.get(target.entity_id)
        if primary is not None and primary.is_alive:
            return primary.position
    return None


def monsters_in_radius(
    centre: Position,
    radius: float,
    max_targets: int,
    monsters: MonsterRegistry,
    distance: DistanceFn = euclidean_distance,
    allowed: AbstractSet[int] | None = None,
) -> List[MonsterInstance]:
    """Alive monsters within ``radius`` of ``centre`` in scan order.

    Stops after ``max_targets`` hits when it is positive.
    """

    hits: List[MonsterInstance] = []
    for monster in monsters.get_alive_monsters():
        if allowed is not None and monster.id not in allowed:
            continue
        if distance(centre, monster.position) <= radius:
            hits.append(monster)
            if max_targets > 0 and len(hits) >= max_targets:
                break
    return hits


def determine_targets(
    caster: Character,
    template: SkillTemplate,
    target: Target,
    monsters: MonsterRegistry,
    distance: DistanceFn = euclidean_distance,
    allowed: AbstractSet[int] | None = None,
) -> List[MonsterInstance]:
    """Return the monsters ``template`` affects when aimed at ``target``.

    ``allowed`` limits the result to monsters whose locks the caller holds.
    """

    if template.target_type is TargetKind.SINGLE:
        if not isinstance(target, EntityTarget):
            return []
        monster = monsters.get(target.entity_id)
        if monster is None or not monster.is_alive:
            return []
        if allowed is not None and monster.id not in allowed:
            return []
        return [monster]

    centre = area_centre(caster, template, target, monsters)
    if centre is None:
        return []
    return monsters_in_radius(
        centre,
        template.area_radius,
        template.max_targets,
        monsters,
        distance,
        allowed,
    )


__all__ = ["area_centre", "monsters_in_radius", "determine_targets"]
