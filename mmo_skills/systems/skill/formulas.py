"""Damage and heal arithmetic.

All randomness comes from the ``rng`` argument (anything with ``random()``
and ``randrange(n)``, normally a seeded :class:`random.Random`), so a cast
replays identically for the same seed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from ...skills.templates import SkillTemplate

BASE_ACCURACY = 175
BASE_EVASION = 100
BASE_HIT_CHANCE = 0.80
MIN_HIT_CHANCE = 0.30
MAX_HIT_CHANCE = 0.95
VARIANCE = 0.10
CRITICAL_MULTIPLIER = 1.5
GUARANTEED_FRACTION = 0.1
MIN_MITIGATION_FACTOR = 0.1
DEFENSE_CONSTANT = 100


class RandomSource(Protocol):
    def random(self) -> float: ...

    def randrange(self, stop: int) -> int: ...


@dataclass
class DamageRoll:
    amount: int
    critical: bool = False


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def hit_chance(caster: Any, target: Any) -> float:
    """Chance in ``[0.30, 0.95]`` that ``caster`` hits ``target``."""

    accuracy = BASE_ACCURACY + caster.dexterity + caster.level
    evasion = BASE_EVASION + target.level + target.defense
    return clamp(BASE_HIT_CHANCE + (accuracy - evasion) / 100.0, MIN_HIT_CHANCE, MAX_HIT_CHANCE)


def roll_hit(rng: RandomSource, caster: Any, target: Any) -> bool:
    """Return ``False`` when the draw lands at or above the hit chance."""

    return rng.random() < hit_chance(caster, target)


def variance_multiplier(draw: float) -> float:
    """Map a uniform draw in ``[0, 1)`` onto a multiplier in ``[0.95, 1.05)``."""

    return 1.0 + (draw - 0.5) * VARIANCE


def base_damage(template: SkillTemplate, caster: Any) -> int:
    """Template damage plus stat scaling, scaled by caster level."""

    damage = template.base_damage
    damage += int(caster.strength * template.str_scale)
    damage += int(caster.intelligence * template.int_scale)
    damage += int(caster.dexterity * template.dex_scale)
    damage += int(caster.vitality * template.vit_scale)
    return int(damage * (1.0 + (caster.level - 1) * template.level_scale * 0.1))


def mitigate(damage: int, defense: int) -> int:
    """Reduce ``damage`` by ``defense`` keeping a guaranteed 10% portion.

    The result is at least 1. Defense below zero (a debuffed monster)
    mitigates nothing.
    """

    defense = max(defense, 0)
    guaranteed = int(damage * GUARANTEED_FRACTION)
    defensible = damage - guaranteed
    factor = 1.0 - defense / float(defense + DEFENSE_CONSTANT)
    factor = max(factor, MIN_MITIGATION_FACTOR)
    return max(guaranteed + int(defensible * factor), 1)


def roll_damage(template: SkillTemplate, caster: Any, target_defense: int, rng: RandomSource) -> DamageRoll:
    """Compute the final damage ``caster`` deals with ``template``."""

    raw = base_damage(template, caster)
    damage = int(raw * template.damage_multiplier * variance_multiplier(rng.random()))
    damage = int(clamp(damage, template.min_damage, template.max_damage))

    critical = False
    if template.critical_chance > 0 and rng.randrange(100) < template.critical_chance:
        damage = int(damage * CRITICAL_MULTIPLIER)
        critical = True

    final = mitigate(damage, target_defense)
    final = int(clamp(final, template.min_damage, template.max_damage))
    return DamageRoll(final, critical)


def roll_heal(template: SkillTemplate, caster: Any, rng: RandomSource) -> int:
    """Compute the heal amount before max-health clamping."""

    amount = template.effect_value
    amount += int(caster.intelligence * template.int_scale)
    amount += int(caster.vitality * template.vit_scale)
    return max(int(amount * variance_multiplier(rng.random())), 0)


__all__ = [
    "RandomSource",
    "DamageRoll",
    "hit_chance",
    "roll_hit",
    "variance_multiplier",
    "base_damage",
    "mitigate",
    "roll_damage",
    "roll_heal",
]
