"""Skill template catalog loaded from YAML/JSON configuration."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

import yaml

from ..core.components.stats import StatKind

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when a skill catalog source is missing or malformed."""


class SkillKind(Enum):
    """What a skill does when it resolves."""

    ATTACK = "attack"
    HEAL = "heal"
    BUFF = "buff"
    DEBUFF = "debuff"


class TargetKind(Enum):
    """How a skill picks what it affects."""

    SINGLE = "single"
    SELF = "self"
    NO_TARGET = "no_target"
    AREA = "area"

    @classmethod
    def parse(cls, key: str) -> "TargetKind":
        norm = str(key).strip().lower()
        kind = _TARGET_ALIASES.get(norm)
        if kind is None:
            raise ValueError(f"Unknown target type: {key!r}")
        return kind

    @property
    def is_untargeted(self) -> bool:
        return self in (TargetKind.SELF, TargetKind.NO_TARGET)


_TARGET_ALIASES: Dict[str, TargetKind] = {
    "single": TargetKind.SINGLE,
    "self": TargetKind.SELF,
    "no_target": TargetKind.NO_TARGET,
    "notarget": TargetKind.NO_TARGET,
    "none": TargetKind.NO_TARGET,
    "area": TargetKind.AREA,
    "aoe": TargetKind.AREA,
    "ground": TargetKind.AREA,
}


@dataclass(frozen=True)
class SkillTemplate:
    """Immutable numeric and gating definition of one skill."""

    id: int
    name: str
    skill_type: SkillKind
    target_type: TargetKind
    description: str = ""
    class_required: int = 0
    level_required: int = 1
    mana_cost: int = 0
    health_cost: int = 0
    cooldown: float = 0.0
    cast_time: float = 0.0
    range: float = 0.0
    base_damage: int = 0
    str_scale: float = 0.0
    int_scale: float = 0.0
    dex_scale: float = 0.0
    vit_scale: float = 0.0
    level_scale: float = 0.0
    damage_multiplier: float = 1.0
    min_damage: int = 1
    max_damage: int = 99999
    can_miss: bool = False
    critical_chance: int = 0
    area_radius: float = 0.0
    max_targets: int = 0
    effect_type: str = ""
    effect_value: int = 0
    effect_target: Optional[StatKind] = None
    effect_duration: float = 0.0

    @property
    def targets_monsters(self) -> bool:
        """Attacks, and debuffs aimed at something, resolve against monsters."""

        if self.skill_type is SkillKind.ATTACK:
            return True
        return self.skill_type is SkillKind.DEBUFF and not self.target_type.is_untargeted


_INT_FIELDS = (
    "class_required",
    "level_required",
    "mana_cost",
    "health_cost",
    "base_damage",
    "min_damage",
    "max_damage",
    "critical_chance",
    "max_targets",
    "effect_value",
)
_FLOAT_FIELDS = (
    "cooldown",
    "cast_time",
    "range",
    "str_scale",
    "int_scale",
    "dex_scale",
    "vit_scale",
    "level_scale",
    "damage_multiplier",
    "area_radius",
    "effect_duration",
)


def _parse_flag(raw: Mapping[str, Any], name: str) -> bool:
    # Strings like "false" are truthy, so only real booleans are accepted.
    value = raw.get(name, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise CatalogError(f"Invalid skill record {raw.get('id')!r}: {name} must be true or false, got {value!r}")
    return value


def parse_template(raw: Mapping[str, Any]) -> SkillTemplate:
    """Build a :class:`SkillTemplate` from one catalog record."""

    if not isinstance(raw, Mapping):
        raise CatalogError(f"Skill record must be a mapping, got {type(raw).__name__}")
    if "id" not in raw:
        raise CatalogError(f"Skill record without id: {dict(raw)!r}")

    try:
        kwargs: Dict[str, Any] = {
            "id": int(raw["id"]),
            "name": str(raw.get("name", f"skill_{raw['id']}")),
            "description": str(raw.get("description", "") or ""),
            "skill_type": SkillKind(str(raw.get("skill_type", "attack")).lower()),
            "target_type": TargetKind.parse(raw.get("target_type", "single")),
            "can_miss": _parse_flag(raw, "can_miss"),
            "effect_type": str(raw.get("effect_type", "") or ""),
        }
        for name in _INT_FIELDS:
            if name in raw and raw[name] is not None:
                kwargs[name] = int(raw[name])
        for name in _FLOAT_FIELDS:
            if name in raw and raw[name] is not None:
                kwargs[name] = float(raw[name])
        effect_target = raw.get("effect_target")
        if effect_target:
            kwargs["effect_target"] = StatKind.parse(effect_target)
    except (TypeError, ValueError) as exc:
        raise CatalogError(f"Invalid skill record {raw.get('id')!r}: {exc}") from exc

    template = SkillTemplate(**kwargs)
    if template.skill_type in (SkillKind.BUFF, SkillKind.DEBUFF) and template.effect_target is None:
        raise CatalogError(f"Skill {template.id} is a {template.skill_type.value} without effect_target")
    return template


def parse_catalog(data: Any) -> Dict[int, SkillTemplate]:
    """Convert raw catalog ``data`` into an ordered ``id -> template`` map."""

    if isinstance(data, Mapping):
        records = data.get("skills")
    else:
        records = data
    if not isinstance(records, list):
        raise CatalogError("Skill catalog must contain a list of skills")

    catalog: Dict[int, SkillTemplate] = {}
    for raw in records:
        template = parse_template(raw)
        if template.id in catalog:
            raise CatalogError(f"Duplicate skill id {template.id}")
        catalog[template.id] = template
    return catalog


def read_catalog(path: str | Path) -> Dict[int, SkillTemplate]:
    """Read and parse the catalog file at ``path``."""

    p = Path(path)
    if not p.is_file():
        raise CatalogError(f"Skill catalog {p} not found")
    try:
        with open(p, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise CatalogError(f"Could not read skill catalog {p}: {exc}") from exc
    return parse_catalog(data)


class SkillTemplateStore:
    """Hold the current skill catalog and swap it atomically on (re)load."""

    def __init__(self, source: Any = None) -> None:
        self._templates: Dict[int, SkillTemplate] = {}
        self._source: Any = None
        self._lock = threading.Lock()
        if source is not None:
            self.load(source)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self, source: Any) -> Dict[int, SkillTemplate]:
        """Replace the catalog with templates read from ``source``.

        ``source`` is a file path or already-parsed catalog data. On failure
        the previous catalog is kept and returned.
        """

        with self._lock:
            try:
                if isinstance(source, (str, Path)):
                    catalog = read_catalog(source)
                else:
                    catalog = parse_catalog(source)
            except CatalogError as exc:
                logger.error("Skill catalog not loaded, keeping %d templates: %s", len(self._templates), exc)
                return self._templates
            self._templates = catalog
            self._source = source
        logger.info("Loaded %d skill templates", len(catalog))
        return catalog

    def reload(self) -> Dict[int, SkillTemplate]:
        """Re-read the last successfully loaded source."""

        if self._source is None:
            logger.warning("Skill catalog reload requested before any load")
            return self._templates
        logger.info("Reloading skill configurations...")
        return self.load(self._source)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get(self, skill_id: int) -> SkillTemplate | None:
        return self._templates.get(skill_id)

    def all(self) -> List[SkillTemplate]:
        """Return every template in catalog order."""

        return list(self._templates.values())

    def __contains__(self, skill_id: object) -> bool:
        return skill_id in self._templates

    def __iter__(self) -> Iterator[SkillTemplate]:
        return iter(list(self._templates.values()))

    def __len__(self) -> int:
        return len(self._templates)


__all__ = [
    "CatalogError",
    "SkillKind",
    "TargetKind",
    "SkillTemplate",
    "SkillTemplateStore",
    "parse_template",
    "parse_catalog",
    "read_catalog",
]
