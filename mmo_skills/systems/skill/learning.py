"""Skill learning and per-character learned-skill records."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from ...core.components.character import Character
from ...core.locks import LockRegistry, character_key
from ...persistence.interfaces import (
    CharacterStore,
    SkillPersistence,
    log_failed_write,
    try_write,
)
from ...skills.templates import SkillTemplate, SkillTemplateStore

logger = logging.getLogger(__name__)


@dataclass
class LearnedSkillRecord:
    """One character's progress in one skill."""

    character_id: int
    skill_id: int
    level: int = 1
    is_learned: bool = True
    # ``None`` means the skill has never been cast.
    last_cast_time: Optional[float] = None


class LearnFailure(str, Enum):
    SKILL_NOT_FOUND = "SKILL_NOT_FOUND"
    CHARACTER_NOT_FOUND = "CHARACTER_NOT_FOUND"
    LEVEL_TOO_LOW = "LEVEL_TOO_LOW"
    CLASS_MISMATCH = "CLASS_MISMATCH"
    ALREADY_LEARNED = "ALREADY_LEARNED"


@dataclass
class LearnResult:
    success: bool
    reason: Optional[LearnFailure] = None
    record: Optional[LearnedSkillRecord] = None


class SkillBook:
    """Gate skill learning and own every character's learned-skill records."""

    def __init__(
        self,
        templates: SkillTemplateStore,
        characters: CharacterStore,
        persistence: SkillPersistence,
        class_id: Callable[[str], int],
        locks: LockRegistry | None = None,
    ) -> None:
        self.templates = templates
        self.characters = characters
        self.persistence = persistence
        self.class_id = class_id
        self.locks = locks or LockRegistry()
        # character id -> skill id -> record
        self._records: Dict[int, Dict[int, LearnedSkillRecord]] = {}
        self._guard = threading.Lock()

    # ------------------------------------------------------------------
    # Gating
    # ------------------------------------------------------------------
    def qualifies(self, character: Character, template: SkillTemplate) -> bool:
        """Return ``True`` if ``character`` meets the level and class gates."""

        if character.level < template.level_required:
            return False
        if template.class_required != 0 and self.class_id(character.class_name) != template.class_required:
            return False
        return True

    def learn(self, character_id: int, skill_id: int) -> LearnResult:
        """Unlock ``skill_id`` for ``character_id`` if every gate passes."""

        template = self.templates.get(skill_id)
        if template is None:
            logger.debug("Learn rejected: skill %s not found", skill_id)
            return LearnResult(False, LearnFailure.SKILL_NOT_FOUND)

        with self.locks.hold([character_key(character_id)]):
            character = self.characters.get(character_id)
            if character is None:
                logger.debug("Learn rejected: character %s not found", character_id)
                return LearnResult(False, LearnFailure.CHARACTER_NOT_FOUND)

            if character.level < template.level_required:
                logger.debug("%s lacks the level to learn %s", character.name, template.name)
                return LearnResult(False, LearnFailure.LEVEL_TOO_LOW)

            if template.class_required != 0 and self.class_id(character.class_name) != template.class_required:
                logger.debug("%s is not usable by class %s", template.name, character.class_name)
                return LearnResult(False, LearnFailure.CLASS_MISMATCH)

            records = self._records_for(character_id)
            if skill_id in records:
                logger.debug("%s already learned %s", character.name, template.name)
                return LearnResult(False, LearnFailure.ALREADY_LEARNED)

            record = LearnedSkillRecord(character_id=character_id, skill_id=skill_id)
            records[skill_id] = record
            self.save(record)
        logger.info("%s learned %s", character.name, template.name)
        return LearnResult(True, record=record)

    def learnable(self, character: Character) -> List[SkillTemplate]:
        """Return templates ``character`` qualifies for but has not learned."""

        known = self._records_for(character.id)
        return [
            template
            for template in self.templates.all()
            if template.id not in known and self.qualifies(character, template)
        ]

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def _records_for(self, character_id: int) -> Dict[int, LearnedSkillRecord]:
        return self.load_character_skills(character_id)

    def load_character_skills(self, character_id: int) -> Dict[int, LearnedSkillRecord]:
        """Populate ``character_id``'s records from persistence once."""

        with self._guard:
            if character_id in self._records:
                return self._records[character_id]
        try:
            loaded = self.persistence.load_learned_skills(character_id)
        except Exception as exc:
            logger.warning("Could not load learned skills for character %s: %s", character_id, exc)
            loaded = []
        with self._guard:
            records = self._records.setdefault(character_id, {})
            for record in loaded:
                records.setdefault(record.skill_id, record)
        logger.debug("Loaded %d learned skills for character %s", len(loaded), character_id)
        return records

    def record(self, character_id: int, skill_id: int) -> Optional[LearnedSkillRecord]:
        return self._records_for(character_id).get(skill_id)

    def has_learned(self, character_id: int, skill_id: int) -> bool:
        record = self.record(character_id, skill_id)
        return record is not None and record.is_learned

    def skills_for(self, character_id: int) -> Dict[int, LearnedSkillRecord]:
        """Return a copy of ``character_id``'s records keyed by skill id."""

        return dict(self._records_for(character_id))

    def save(self, record: LearnedSkillRecord) -> bool:
        """Persist ``record``; failures are logged and reported as ``False``."""

        return log_failed_write(
            try_write("save_learned_skill", self.persistence.save_learned_skill, record),
            logger,
        )


__all__ = [
    "LearnedSkillRecord",
    "LearnFailure",
    "LearnResult",
    "SkillBook",
]
