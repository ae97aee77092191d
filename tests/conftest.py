# tests/conftest.py
import copy
from typing import Any, Dict, Iterable, List, Sequence

import pytest

from mmo_skills.config import _parse_config
from mmo_skills.core.components.character import Character
from mmo_skills.core.components.monster import MonsterInstance
from mmo_skills.core.components.position import Position
from mmo_skills.engine import build_engine
from mmo_skills.persistence.memory import (
    InMemoryCharacterStore,
    InMemoryMonsterRegistry,
    InMemorySkillPersistence,
)


class ScriptedRandom:
    """Deterministic stand-in for ``random.Random``.

    ``random()`` pops from ``floats`` then falls back to ``default_float``;
    ``randrange()`` pops from ``ints`` then falls back to ``default_int``.
    The defaults give a variance multiplier of exactly 1.0 and no crits.
    """

    def __init__(
        self,
        floats: Sequence[float] = (),
        ints: Sequence[int] = (),
        default_float: float = 0.5,
        default_int: int = 99,
    ) -> None:
        self.floats = list(floats)
        self.ints = list(ints)
        self.default_float = default_float
        self.default_int = default_int

    def random(self) -> float:
        if self.floats:
            return self.floats.pop(0)
        return self.default_float

    def randrange(self, stop: int) -> int:
        if self.ints:
            return self.ints.pop(0)
        return min(self.default_int, stop - 1)


CATALOG: List[Dict[str, Any]] = [
    {"id": 1, "name": "Strike", "skill_type": "attack", "target_type": "single",
     "mana_cost": 10, "cooldown": 3.0, "range": 5.0, "base_damage": 50,
     "min_damage": 1, "max_damage": 1000},
    {"id": 2, "name": "Nova", "skill_type": "attack", "target_type": "aoe",
     "range": 10.0, "base_damage": 20, "area_radius": 5.0, "max_targets": 2},
    {"id": 3, "name": "Mend", "skill_type": "heal", "target_type": "single",
     "mana_cost": 10, "range": 10.0, "effect_value": 30},
    {"id": 4, "name": "Might", "skill_type": "buff", "target_type": "single",
     "effect_type": "stat", "effect_value": 10, "effect_target": "str",
     "effect_duration": 30.0},
    {"id": 5, "name": "Hex", "skill_type": "debuff", "target_type": "single",
     "range": 5.0, "effect_value": -5, "effect_target": "def", "effect_duration": 10.0},
    {"id": 6, "name": "Overload", "skill_type": "attack", "target_type": "single",
     "mana_cost": 100, "range": 5.0, "base_damage": 10},
    {"id": 7, "name": "Arcane Bolt", "skill_type": "attack", "target_type": "single",
     "class_required": 2, "range": 5.0, "base_damage": 10},
    {"id": 8, "name": "Elite Cut", "skill_type": "attack", "target_type": "single",
     "level_required": 10, "range": 5.0, "base_damage": 10},
    {"id": 9, "name": "Blood Rite", "skill_type": "buff", "target_type": "no_target",
     "health_cost": 50, "effect_value": 5, "effect_target": "matk",
     "effect_duration": 5.0},
    {"id": 10, "name": "Whirl", "skill_type": "attack", "target_type": "self",
     "base_damage": 20, "area_radius": 3.0},
    {"id": 11, "name": "Lucky Shot", "skill_type": "attack", "target_type": "single",
     "range": 5.0, "base_damage": 50, "can_miss": True, "critical_chance": 50},
    {"id": 12, "name": "Rain", "skill_type": "attack", "target_type": "ground",
     "range": 10.0, "base_damage": 20, "area_radius": 5.0},
    {"id": 13, "name": "Dark Pact", "skill_type": "debuff", "target_type": "no_target",
     "effect_value": -3, "effect_target": "vit", "effect_duration": 5.0},
    {"id": 14, "name": "Weaken Field", "skill_type": "debuff", "target_type": "aoe",
     "range": 10.0, "area_radius": 3.0, "effect_value": -4, "effect_target": "def",
     "effect_duration": 5.0},
]


def make_hero(**overrides: Any) -> Character:
    values: Dict[str, Any] = dict(
        id=1,
        name="Hero",
        class_name="Warrior",
        level=5,
        health=100,
        max_health=100,
        mana=100,
        max_mana=100,
        strength=10,
        intelligence=10,
        dexterity=10,
        vitality=10,
        position=Position(0.0, 0.0),
    )
    values.update(overrides)
    return Character(**values)


def make_monster(monster_id: int, x: float = 1.0, y: float = 0.0, **overrides: Any) -> MonsterInstance:
    values: Dict[str, Any] = dict(
        id=monster_id,
        name=f"Goblin {monster_id}",
        level=1,
        defense=0,
        current_health=1000,
        max_health=1000,
        position=Position(x, y),
    )
    values.update(overrides)
    return MonsterInstance(**values)


@pytest.fixture
def scripted():
    return ScriptedRandom


@pytest.fixture
def hero_factory():
    return make_hero


@pytest.fixture
def monster_factory():
    return make_monster


@pytest.fixture
def catalog() -> List[Dict[str, Any]]:
    return copy.deepcopy(CATALOG)


@pytest.fixture
def engine_factory():
    def _build(
        characters: Iterable[Character] = (),
        monsters: Iterable[MonsterInstance] = (),
        *,
        rng: Any = None,
        catalog: Any = None,
        stacking: str = "stack",
        persistence: Any = None,
        character_store: Any = None,
        learn: Iterable[tuple] = (),
    ):
        characters = list(characters)
        cfg = _parse_config({"skills": {"buff_stacking": stacking}})
        store = character_store if character_store is not None else InMemoryCharacterStore()
        for character in characters:
            store.add(character)
        engine = build_engine(
            cfg,
            characters=store,
            monsters=InMemoryMonsterRegistry(monsters),
            persistence=persistence if persistence is not None else InMemorySkillPersistence(audit=[]),
            catalog=catalog if catalog is not None else copy.deepcopy(CATALOG),
            rng=rng if rng is not None else ScriptedRandom(),
        )
        for character in characters:
            engine.players.connect(character.id)
        for character_id, skill_id in learn:
            assert engine.learn(character_id, skill_id).success
        return engine

    return _build
