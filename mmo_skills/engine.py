"""Wire the skill systems together with explicit dependencies."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from .config import CONFIG, Config
from .core.components.character import Character
from .core.geometry import DistanceFn, euclidean_distance
from .core.locks import LockRegistry
from .persistence.interfaces import CharacterStore, MonsterRegistry, PlayerDirectory, SkillPersistence
from .persistence.memory import (
    InMemoryCharacterStore,
    InMemoryMonsterRegistry,
    InMemorySkillPersistence,
    SessionRegistry,
)
from .skills.templates import SkillTemplate, SkillTemplateStore
from .systems.skill.buffs import ActiveBuff, BuffLedger, BuffStacking
from .systems.skill.formulas import RandomSource
from .systems.skill.learning import LearnedSkillRecord, LearnResult, SkillBook
from .systems.skill.resolver import CastResolver
from .systems.skill.results import SkillCastResult

logger = logging.getLogger(__name__)


@dataclass
class SkillEngine:
    """Holder for the catalog, learn gate, buff ledger and cast resolver."""

    config: Config
    templates: SkillTemplateStore
    characters: CharacterStore
    monsters: MonsterRegistry
    players: PlayerDirectory
    persistence: SkillPersistence
    locks: LockRegistry
    book: SkillBook
    ledger: BuffLedger
    resolver: CastResolver

    # ------------------------------------------------------------------
    # Skill operations
    # ------------------------------------------------------------------
    def learn(self, character_id: int, skill_id: int) -> LearnResult:
        return self.book.learn(character_id, skill_id)

    def learnable(self, character: Character) -> List[SkillTemplate]:
        return self.book.learnable(character)

    def skills_for(self, character_id: int) -> Dict[int, LearnedSkillRecord]:
        return self.book.skills_for(character_id)

    def cast(self, character_id: int, skill_id: int, target: Any, now: float) -> SkillCastResult:
        return self.resolver.cast(character_id, skill_id, target, now)

    def active_buffs(self, character_id: int) -> List[ActiveBuff]:
        return self.ledger.active_buffs(character_id)

    def tick(self, delta_time: float) -> List[ActiveBuff]:
        return self.ledger.tick(delta_time)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reload_templates(self) -> int:
        """Reload the skill catalog and return the number of templates."""

        return len(self.templates.reload())

    def restore(self) -> int:
        """Restore persisted buffs for every known character."""

        return self.ledger.restore()


def _stacking(value: str) -> BuffStacking:
    try:
        return BuffStacking(value)
    except ValueError:
        logger.warning("Unknown buff_stacking '%s' in config, using 'stack'.", value)
        return BuffStacking.STACK


def build_engine(
    config: Config = CONFIG,
    *,
    characters: CharacterStore | None = None,
    monsters: MonsterRegistry | None = None,
    players: PlayerDirectory | None = None,
    persistence: SkillPersistence | None = None,
    catalog: Any = None,
    rng: RandomSource | None = None,
    seed: int | None = None,
    distance: DistanceFn = euclidean_distance,
    audit: str | Path | list | None = None,
) -> SkillEngine:
    """Build a :class:`SkillEngine`.

    Collaborators default to the in-memory implementations. ``catalog`` is a
    path or parsed catalog data; by default the configured catalog file is
    loaded. ``seed`` seeds a private :class:`random.Random` when ``rng`` is
    not supplied.
    """

    characters = characters if characters is not None else InMemoryCharacterStore()
    monsters = monsters if monsters is not None else InMemoryMonsterRegistry()
    players = players if players is not None else SessionRegistry(characters)
    persistence = persistence if persistence is not None else InMemorySkillPersistence(audit=audit)
    locks = LockRegistry()

    templates = SkillTemplateStore()
    templates.load(catalog if catalog is not None else config.catalog_file())

    book = SkillBook(templates, characters, persistence, config.class_id, locks)
    ledger = BuffLedger(
        characters,
        persistence,
        locks,
        stacking=_stacking(config.skills.buff_stacking),
        persist_interval=config.skills.buff_persist_interval,
        monsters=monsters,
    )
    resolver = CastResolver(
        templates,
        book,
        ledger,
        characters,
        monsters,
        players,
        persistence,
        rng=rng if rng is not None else random.Random(seed),
        distance=distance,
        locks=locks,
    )
    logger.info("Skill engine ready with %d templates", len(templates))
    return SkillEngine(
        config=config,
        templates=templates,
        characters=characters,
        monsters=monsters,
        players=players,
        persistence=persistence,
        locks=locks,
        book=book,
        ledger=ledger,
        resolver=resolver,
    )


__all__ = ["SkillEngine", "build_engine"]
