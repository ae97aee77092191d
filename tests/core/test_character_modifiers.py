import pytest

from mmo_skills.core.components.stats import StatKind, adjust_stat, get_stat


def test_modifier_applied_once_per_buff(hero_factory):
    hero = hero_factory(strength=10)

    assert hero.apply_modifier(1, StatKind.STRENGTH, 5)
    assert not hero.apply_modifier(1, StatKind.STRENGTH, 5)
    assert hero.strength == 15

    assert hero.remove_modifier(1, StatKind.STRENGTH, 5)
    assert not hero.remove_modifier(1, StatKind.STRENGTH, 5)
    assert hero.strength == 10


def test_recalculate_clamps_pools(hero_factory):
    hero = hero_factory(health=150, mana=-4)
    hero.recalculate_stats()
    assert hero.health == 100
    assert hero.mana == 0


def test_stat_aliases():
    assert StatKind.parse("STR") is StatKind.STRENGTH
    assert StatKind.parse(" matk ") is StatKind.MAGIC_POWER
    assert StatKind.parse("attackpower") is StatKind.ATTACK_POWER
    with pytest.raises(ValueError):
        StatKind.parse("luck")


def test_stat_accessors(hero_factory):
    hero = hero_factory(defense=3)
    assert adjust_stat(hero, StatKind.DEFENSE, -5) == -2
    assert get_stat(hero, StatKind.DEFENSE) == -2


def test_monster_damage_is_capped_at_remaining_health(monster_factory):
    goblin = monster_factory(1, current_health=30, max_health=30)
    assert goblin.take_damage(50) == 30
    assert goblin.current_health == 0
    assert not goblin.is_alive
    assert goblin.take_damage(5) == 0


def test_monster_modifier_applied_once_per_buff(monster_factory):
    goblin = monster_factory(1, defense=8)

    assert goblin.apply_modifier(3, StatKind.DEFENSE, -5)
    assert not goblin.apply_modifier(3, StatKind.DEFENSE, -5)
    assert goblin.defense == 3

    assert goblin.remove_modifier(3, StatKind.DEFENSE, -5)
    assert goblin.defense == 8
    assert goblin.applied_buff_ids == set()
