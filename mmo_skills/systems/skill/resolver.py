"""Cast resolution: validate, pay, pick targets, apply effects, persist."""

from __future__ import annotations

import logging
import random
from typing import Any, List, Optional, Set, Tuple

from ...core.components.character import Character
from ...core.components.monster import MonsterInstance
from ...core.geometry import DistanceFn, euclidean_distance
from ...core.locks import MONSTER, LockKey, LockRegistry, character_key, monster_key
from ...core.targets import EntityTarget, PointTarget, Target, coerce_target
from ...persistence.interfaces import (
    CharacterStore,
    MonsterRegistry,
    PlayerDirectory,
    SkillPersistence,
    log_failed_write,
    try_write,
)
from ...skills.templates import SkillKind, SkillTemplate, SkillTemplateStore, TargetKind
from .buffs import Buffable, BuffLedger
from .cooldowns import cooldown_remaining, is_ready
from .formulas import RandomSource, roll_damage, roll_heal, roll_hit
from .learning import SkillBook
from .results import (
    MONSTER as MONSTER_TARGET,
    PLAYER,
    FailReason,
    SkillCastResult,
    SkillTargetResult,
    fail_result,
)
from .targeting import determine_targets

logger = logging.getLogger(__name__)


class CastResolver:
    """Resolve skill casts against character and monster state.

    Every cast runs validation, cost deduction and effect application while
    holding the locks of the caster and every entity it may touch, acquired
    in global order through the shared :class:`LockRegistry`.
    """

    def __init__(
        self,
        templates: SkillTemplateStore,
        book: SkillBook,
        ledger: BuffLedger,
        characters: CharacterStore,
        monsters: MonsterRegistry,
        players: PlayerDirectory,
        persistence: SkillPersistence,
        rng: RandomSource | None = None,
        distance: DistanceFn = euclidean_distance,
        locks: LockRegistry | None = None,
    ) -> None:
        self.templates = templates
        self.book = book
        self.ledger = ledger
        self.characters = characters
        self.monsters = monsters
        self.players = players
        self.persistence = persistence
        self.rng: RandomSource = rng if rng is not None else random.Random()
        self.distance = distance
        self.locks = locks or LockRegistry()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def cast(self, character_id: int, skill_id: int, target: Any, now: float) -> SkillCastResult:
        """Resolve one cast of ``skill_id`` by ``character_id`` at time ``now``.

        ``target`` is a :data:`~mmo_skills.core.targets.Target` or a bare
        entity id (``0`` for none). Validation failures come back as a
        result with ``fail_reason`` set; nothing is mutated in that case.
        """

        try:
            resolved = coerce_target(target)
        except TypeError:
            logger.debug("Cast by %s rejected: unusable target %r", character_id, target)
            return fail_result(character_id, skill_id, FailReason.TARGET_NOT_FOUND)

        try:
            # The same template snapshot picks the locks and resolves the cast.
            template = self.templates.get(skill_id)
            keys = self._lock_keys(character_id, template, resolved)
            with self.locks.hold(keys) as held:
                allowed = {entity_id for kind, entity_id in held if kind == MONSTER}
                return self._cast_locked(character_id, skill_id, template, resolved, now, allowed)
        except Exception:
            logger.exception("Unexpected error resolving skill %s for character %s", skill_id, character_id)
            return fail_result(character_id, skill_id, FailReason.INTERNAL_ERROR)

    def cooldown_remaining(self, character_id: int, skill_id: int, now: float) -> float:
        """Seconds until ``character_id`` may cast ``skill_id`` again."""

        template = self.templates.get(skill_id)
        record = self.book.record(character_id, skill_id)
        if template is None or record is None:
            return 0.0
        return cooldown_remaining(record.last_cast_time, template.cooldown, now)

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------
    def _lock_keys(
        self, character_id: int, template: Optional[SkillTemplate], target: Target
    ) -> List[LockKey]:
        """Entities a cast may touch, computed without holding any lock."""

        keys: List[LockKey] = [character_key(character_id)]
        caster = self.characters.get(character_id)
        if template is None or caster is None:
            return keys

        if not template.targets_monsters:
            if isinstance(target, EntityTarget) and not template.target_type.is_untargeted:
                keys.append(character_key(target.entity_id))
            return keys

        if isinstance(target, EntityTarget):
            keys.append(monster_key(target.entity_id))
        for monster in determine_targets(caster, template, target, self.monsters, self.distance):
            keys.append(monster_key(monster.id))
        return keys

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def _resolve_character_target(
        self, caster: Character, template: SkillTemplate, target: Target
    ) -> Tuple[Optional[FailReason], Optional[Character]]:
        """Pick the character a heal, buff or self debuff lands on."""

        if template.target_type.is_untargeted or not isinstance(target, EntityTarget):
            return None, caster
        if target.entity_id == caster.id:
            return None, caster
        player = self.players.get_player(target.entity_id)
        if player is None:
            return FailReason.TARGET_NOT_FOUND, None
        return None, player

    def _validate_monster_target(
        self, caster: Character, template: SkillTemplate, target: Target
    ) -> Optional[FailReason]:
        if template.target_type.is_untargeted:
            return None
        if isinstance(target, EntityTarget):
            monster = self.monsters.get(target.entity_id)
            if monster is None or not monster.is_alive:
                return FailReason.TARGET_NOT_FOUND
            if self.distance(caster.position, monster.position) > template.range:
                return FailReason.OUT_OF_RANGE
            return None
        if isinstance(target, PointTarget) and template.target_type is TargetKind.AREA:
            if self.distance(caster.position, target.position) > template.range:
                return FailReason.OUT_OF_RANGE
            return None
        return FailReason.TARGET_NOT_FOUND

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def _cast_locked(
        self,
        character_id: int,
        skill_id: int,
        template: Optional[SkillTemplate],
        target: Target,
        now: float,
        allowed_monsters: Set[int],
    ) -> SkillCastResult:
        caster = self.characters.get(character_id)
        if caster is None:
            return self._reject(character_id, skill_id, FailReason.CASTER_NOT_FOUND)

        if template is None:
            return self._reject(character_id, skill_id, FailReason.SKILL_NOT_FOUND)

        if caster.is_dead:
            return self._reject(character_id, skill_id, FailReason.CASTER_DEAD)

        record = self.book.record(character_id, skill_id)
        if record is None or not record.is_learned:
            return self._reject(character_id, skill_id, FailReason.SKILL_NOT_LEARNED)

        if caster.mana < template.mana_cost:
            return self._reject(character_id, skill_id, FailReason.INSUFFICIENT_MANA)

        if caster.health <= template.health_cost:
            return self._reject(character_id, skill_id, FailReason.INSUFFICIENT_HEALTH)

        if not is_ready(record.last_cast_time, template.cooldown, now):
            return self._reject(character_id, skill_id, FailReason.ON_COOLDOWN)

        recipient: Optional[Character] = None
        if template.targets_monsters:
            reason = self._validate_monster_target(caster, template, target)
        else:
            reason, recipient = self._resolve_character_target(caster, template, target)
        if reason is not None:
            return self._reject(character_id, skill_id, reason)

        # Every check passed: pay the cost, then resolve.
        snapshot = (caster.mana, caster.health, record.last_cast_time)
        caster.mana -= template.mana_cost
        caster.health = max(caster.health - template.health_cost, 0)
        record.last_cast_time = now

        result = SkillCastResult(
            skill_id=skill_id,
            success=True,
            caster_id=caster.id,
            caster_name=caster.name,
            caster_type=PLAYER,
            skill_name=template.name,
            cast_time=template.cast_time,
        )

        try:
            if template.targets_monsters:
                targets = determine_targets(
                    caster, template, target, self.monsters, self.distance, allowed_monsters
                )
                for monster in targets:
                    if template.skill_type is SkillKind.ATTACK:
                        result.target_results.append(self._apply_damage(caster, template, monster))
                    else:
                        result.target_results.append(self._apply_buff(caster, template, monster, now))
            elif template.skill_type is SkillKind.HEAL:
                result.target_results.append(self._apply_heal(caster, template, recipient or caster))
            else:
                result.target_results.append(self._apply_buff(caster, template, recipient or caster, now))
        except Exception:
            caster.mana, caster.health, record.last_cast_time = snapshot
            raise

        log_failed_write(try_write("update_character", self.characters.update, caster), logger)
        self.book.save(record)
        logger.info(
            "%s cast %s (%d targets)", caster.name, template.name, len(result.target_results)
        )
        return result

    def _reject(self, character_id: int, skill_id: int, reason: FailReason) -> SkillCastResult:
        logger.debug("Cast of skill %s by %s rejected: %s", skill_id, character_id, reason.value)
        return fail_result(character_id, skill_id, reason)

    def _audit(self, caster: Character, template: SkillTemplate, target_result: SkillTargetResult) -> None:
        try:
            self.persistence.log_skill_cast(
                caster.id,
                template.id,
                target_result.target_id,
                target_result.target_name,
                True,
                target_result.damage,
                target_result.heal,
                target_result.is_critical,
                target_result.is_miss,
            )
        except Exception as exc:
            logger.debug("Skill cast audit dropped: %s", exc)

    def _apply_damage(
        self, caster: Character, template: SkillTemplate, monster: MonsterInstance
    ) -> SkillTargetResult:
        result = SkillTargetResult(
            target_id=monster.id,
            target_name=monster.name,
            target_type=MONSTER_TARGET,
            remaining_health=monster.current_health,
        )

        if template.can_miss and not roll_hit(self.rng, caster, monster):
            result.is_miss = True
            logger.info("%s missed %s with %s", caster.name, monster.name, template.name)
            self._audit(caster, template, result)
            return result

        roll = roll_damage(template, caster, monster.defense, self.rng)
        actual = monster.take_damage(roll.amount)

        result.damage = actual
        result.is_critical = roll.critical
        result.remaining_health = monster.current_health
        result.died = not monster.is_alive

        logger.info(
            "%s cast %s on %s: %d dmg%s",
            caster.name,
            template.name,
            monster.name,
            actual,
            " CRIT!" if roll.critical else "",
        )
        if result.died:
            logger.info("%s died from %s", monster.name, template.name)
        self._audit(caster, template, result)
        return result

    def _apply_heal(
        self, caster: Character, template: SkillTemplate, target: Character
    ) -> SkillTargetResult:
        amount = roll_heal(template, caster, self.rng)
        old_health = target.health
        target.health = min(target.health + amount, target.max_health)
        actual = max(target.health - old_health, 0)

        result = SkillTargetResult(
            target_id=target.id,
            target_name=target.name,
            target_type=PLAYER,
            heal=actual,
            remaining_health=target.health,
        )
        logger.info(
            "%s cast %s on %s: healed %d HP (%d -> %d)",
            caster.name,
            template.name,
            target.name,
            actual,
            old_health,
            target.health,
        )
        if target is not caster:
            log_failed_write(try_write("update_character", self.characters.update, target), logger)
        self._audit(caster, template, result)
        return result

    def _apply_buff(
        self, caster: Character, template: SkillTemplate, target: Buffable, now: float
    ) -> SkillTargetResult:
        buff = self.ledger.apply(caster, target, template, now)
        if isinstance(target, MonsterInstance):
            return SkillTargetResult(
                target_id=target.id,
                target_name=target.name,
                target_type=MONSTER_TARGET,
                remaining_health=target.current_health,
                applied_buffs=[buff],
            )
        return SkillTargetResult(
            target_id=target.id,
            target_name=target.name,
            target_type=PLAYER,
            remaining_health=target.health,
            applied_buffs=[buff],
        )


__all__ = ["CastResolver"]
