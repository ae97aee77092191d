import pytest

from mmo_skills.core.components.position import Position
from mmo_skills.core.targets import (
    DirectionTarget,
    EntityTarget,
    PointTarget,
    coerce_target,
)
from mmo_skills.persistence.memory import InMemoryMonsterRegistry
from mmo_skills.skills.templates import parse_template
from mmo_skills.systems.skill.targeting import determine_targets, monsters_in_radius


def _template(**fields):
    raw = {"id": 1, "name": "Test", "skill_type": "attack"}
    raw.update(fields)
    return parse_template(raw)


def test_coerce_target_variants():
    assert coerce_target(0) is None
    assert coerce_target(None) is None
    assert coerce_target(12) == EntityTarget(12)
    assert coerce_target(Position(1.0, 2.0)) == PointTarget(Position(1.0, 2.0))
    target = DirectionTarget(Position(0.0, 1.0))
    assert coerce_target(target) is target
    with pytest.raises(TypeError):
        coerce_target(True)
    with pytest.raises(TypeError):
        coerce_target("12")


def test_single_target_only_returns_live_primary(hero_factory, monster_factory):
    registry = InMemoryMonsterRegistry([monster_factory(1), monster_factory(2, current_health=0)])
    template = _template(target_type="single")
    hero = hero_factory()

    assert [m.id for m in determine_targets(hero, template, EntityTarget(1), registry)] == [1]
    assert determine_targets(hero, template, EntityTarget(2), registry) == []
    assert determine_targets(hero, template, None, registry) == []


def test_area_scan_order_and_cap(monster_factory):
    registry = InMemoryMonsterRegistry(
        [monster_factory(i, x=float(i)) for i in range(1, 8)]
    )
    hits = monsters_in_radius(Position(0.0, 0.0), 4.0, 3, registry)
    assert [m.id for m in hits] == [1, 2, 3]

    uncapped = monsters_in_radius(Position(0.0, 0.0), 4.0, 0, registry)
    assert [m.id for m in uncapped] == [1, 2, 3, 4]


def test_area_respects_allowed_set(monster_factory):
    registry = InMemoryMonsterRegistry([monster_factory(1), monster_factory(2), monster_factory(3)])
    hits = monsters_in_radius(Position(0.0, 0.0), 5.0, 0, registry, allowed={1, 3})
    assert [m.id for m in hits] == [1, 3]


def test_self_area_centres_on_caster(hero_factory, monster_factory):
    registry = InMemoryMonsterRegistry([monster_factory(1, x=2.0), monster_factory(2, x=9.0)])
    hero = hero_factory(position=Position(8.0, 0.0))
    template = _template(target_type="self", area_radius=1.5)

    assert [m.id for m in determine_targets(hero, template, None, registry)] == [2]


def test_self_attack_without_radius_hits_nothing(hero_factory, monster_factory):
    registry = InMemoryMonsterRegistry([monster_factory(1, x=0.0)])
    template = _template(target_type="self")
    assert determine_targets(hero_factory(), template, None, registry) == []


def test_custom_distance_function(hero_factory, monster_factory):
    registry = InMemoryMonsterRegistry([monster_factory(1, x=3.0, y=3.0)])
    template = _template(target_type="ground", area_radius=3.0)

    def chebyshev(a, b):
        return max(abs(a.x - b.x), abs(a.y - b.y))

    target = PointTarget(Position(0.0, 0.0))
    assert determine_targets(hero_factory(), template, target, registry) == []
    assert [m.id for m in determine_targets(hero_factory(), template, target, registry, chebyshev)] == [1]
