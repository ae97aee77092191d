import random

import pytest

from mmo_skills.skills.templates import parse_template
from mmo_skills.systems.skill import formulas
from mmo_skills.systems.skill.formulas import (
    base_damage,
    hit_chance,
    mitigate,
    roll_damage,
    roll_heal,
    roll_hit,
    variance_multiplier,
)


def _attack(**fields):
    raw = {"id": 1, "name": "Test", "skill_type": "attack", "target_type": "single"}
    raw.update(fields)
    return parse_template(raw)


def test_mitigation_keeps_guaranteed_portion(hero_factory, scripted):
    template = _attack(base_damage=50)
    roll = roll_damage(template, hero_factory(), 100, scripted())
    assert roll.amount == 27
    assert not roll.critical


def test_mitigation_floor():
    assert mitigate(100, 0) == 100
    assert mitigate(100, 10 ** 6) == 19
    assert mitigate(1, 1000) == 1
    assert mitigate(0, 0) == 1
    assert mitigate(100, -5) == 100
    assert mitigate(100, -100) == 100


def test_variance_bounds():
    assert variance_multiplier(0.5) == 1.0
    assert variance_multiplier(0.0) == pytest.approx(0.95)
    assert variance_multiplier(0.999999) < 1.05


def test_base_damage_scaling(hero_factory):
    template = _attack(base_damage=10, str_scale=1.5, int_scale=0.5, level_scale=1.0)
    hero = hero_factory(level=3, strength=20, intelligence=9)
    # (10 + 30 + 4) * (1 + 2 * 1.0 * 0.1)
    assert base_damage(template, hero) == 52


def test_hit_chance_is_clamped(hero_factory, monster_factory):
    hero = hero_factory(level=5, dexterity=10)
    assert hit_chance(hero, monster_factory(1)) == formulas.MAX_HIT_CHANCE
    assert hit_chance(hero, monster_factory(1, defense=500)) == formulas.MIN_HIT_CHANCE
    assert hit_chance(hero, monster_factory(1, level=20, defense=90)) == pytest.approx(0.80 + (190 - 210) / 100.0)


def test_draw_at_hit_chance_misses(hero_factory, monster_factory, scripted):
    hero = hero_factory()
    goblin = monster_factory(1)
    assert not roll_hit(scripted(floats=[0.95]), hero, goblin)
    assert roll_hit(scripted(floats=[0.94]), hero, goblin)


def test_critical_multiplies_before_mitigation(hero_factory, scripted):
    template = _attack(base_damage=50, critical_chance=50)
    roll = roll_damage(template, hero_factory(), 0, scripted(ints=[49]))
    assert roll.critical
    assert roll.amount == 75

    roll = roll_damage(template, hero_factory(), 0, scripted(ints=[50]))
    assert not roll.critical
    assert roll.amount == 50


def test_damage_stays_within_template_bounds(hero_factory):
    template = _attack(base_damage=500, critical_chance=30, min_damage=20, max_damage=400)
    rng = random.Random(7)
    hero = hero_factory()
    for defense in (0, 50, 250, 5000):
        for _ in range(200):
            amount = roll_damage(template, hero, defense, rng).amount
            assert 20 <= amount <= 400


def test_same_seed_same_rolls(hero_factory):
    template = _attack(base_damage=120, critical_chance=25)
    hero = hero_factory()
    first = [roll_damage(template, hero, 30, random.Random(3)) for _ in range(5)]
    second = [roll_damage(template, hero, 30, random.Random(3)) for _ in range(5)]
    assert first == second


def test_heal_roll(hero_factory, scripted):
    template = parse_template(
        {"id": 2, "name": "Mend", "skill_type": "heal", "effect_value": 30, "int_scale": 1.0}
    )
    hero = hero_factory(intelligence=12)
    assert roll_heal(template, hero, scripted()) == 42
    assert roll_heal(template, hero, scripted(floats=[0.0])) == 39
