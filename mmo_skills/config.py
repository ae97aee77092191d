"""Simple configuration loader for mmo_skills."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


CONFIG_PATH = Path(__file__).resolve().parents[1] / "config.yaml"

DEFAULT_CLASSES: Dict[str, int] = {
    "Warrior": 1,
    "Mage": 2,
    "Archer": 3,
    "Cleric": 4,
}


@dataclass
class ServerConfig:
    """Configuration values for the server section."""

    tick_rate: float = 10.0


@dataclass
class SkillsConfig:
    """Skill catalog location and buff ledger behaviour."""

    catalog_path: str = "mmo_skills/data/skills.yaml"
    buff_stacking: str = "stack"
    buff_persist_interval: int = 5


@dataclass
class LoggingConfig:
    """Global and per-module log levels."""

    global_level: str = "INFO"
    module_levels: Dict[str, str] = field(default_factory=dict)


@dataclass
class Config:
    """Top level configuration dataclass."""

    server: ServerConfig
    skills: SkillsConfig
    logging: LoggingConfig
    classes: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_CLASSES))
    paths: Optional[Dict[str, str]] = None
    cache: Optional[Dict[str, Any]] = None

    def catalog_file(self, root: Path | None = None) -> Path:
        """Return the skill catalog path, resolved against ``root``."""

        path = Path(self.skills.catalog_path)
        if path.is_absolute():
            return path
        base = root if root is not None else CONFIG_PATH.parent
        return base / path

    def class_id(self, class_name: str) -> int:
        """Map a character class name to its numeric id (``0`` if unknown)."""

        return int(self.classes.get(class_name, 0))


def _parse_config(data: dict[str, Any]) -> Config:
    """Convert raw ``data`` into :class:`Config`."""

    server_data = data.get("server", {}) or {}
    server = ServerConfig(tick_rate=float(server_data.get("tick_rate", 10)))

    skills_data = data.get("skills", {}) or {}
    skills = SkillsConfig(
        catalog_path=str(skills_data.get("catalog_path", SkillsConfig.catalog_path)),
        buff_stacking=str(skills_data.get("buff_stacking", "stack")).lower(),
        buff_persist_interval=int(skills_data.get("buff_persist_interval", 5)),
    )

    logging_data = data.get("logging", {}) or {}
    log_cfg = LoggingConfig(
        global_level=str(logging_data.get("global_level", "INFO")).upper(),
        module_levels=dict(logging_data.get("module_levels") or {}),
    )

    classes_data = data.get("classes")
    classes = (
        {str(k): int(v) for k, v in classes_data.items()}
        if classes_data
        else dict(DEFAULT_CLASSES)
    )

    paths = data.get("paths")
    cache = data.get("cache")

    return Config(
        server=server,
        skills=skills,
        logging=log_cfg,
        classes=classes,
        paths=paths,
        cache=cache,
    )


def load_config(path: Path = CONFIG_PATH) -> Config:
    """Load configuration from ``path`` and return a :class:`Config`."""

    path = Path(path)
    if path.is_file():
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    else:
        raw = {}
    return _parse_config(raw)


# Load configuration at module import time.
CONFIG = load_config()


__all__ = [
    "CONFIG",
    "Config",
    "ServerConfig",
    "SkillsConfig",
    "LoggingConfig",
    "load_config",
]
