from pathlib import Path

import yaml

from mmo_skills.config import (
    CONFIG,
    CONFIG_PATH,
    Config,
    LoggingConfig,
    SkillsConfig,
    _parse_config,
    load_config,
)


def test_config_module_loads_config():
    assert isinstance(CONFIG, Config)
    assert isinstance(CONFIG.skills, SkillsConfig)
    assert isinstance(CONFIG.logging, LoggingConfig)
    assert CONFIG.server.tick_rate == 10
    assert CONFIG.skills.buff_stacking == "stack"
    assert CONFIG.skills.buff_persist_interval == 5
    assert CONFIG.class_id("Mage") == 2


def test_catalog_file_resolves_against_repo_root():
    assert CONFIG.catalog_file() == CONFIG_PATH.parent / "mmo_skills" / "data" / "skills.yaml"
    assert CONFIG.catalog_file().is_file()


def test_defaults_for_missing_sections():
    cfg = _parse_config({})

    assert cfg.server.tick_rate == 10.0
    assert cfg.skills.catalog_path == "mmo_skills/data/skills.yaml"
    assert cfg.logging.global_level == "INFO"
    assert cfg.classes["Cleric"] == 4
    assert cfg.class_id("Necromancer") == 0
    assert cfg.paths is None


def test_load_config_from_file(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "server": {"tick_rate": 20},
                "skills": {
                    "catalog_path": str(tmp_path / "custom.yaml"),
                    "buff_stacking": "REFRESH",
                    "buff_persist_interval": 2,
                },
                "classes": {"Knight": 7},
                "logging": {"global_level": "debug", "module_levels": {"mmo_skills": "ERROR"}},
            }
        ),
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.server.tick_rate == 20.0
    assert cfg.skills.buff_stacking == "refresh"
    assert cfg.skills.buff_persist_interval == 2
    assert cfg.catalog_file() == tmp_path / "custom.yaml"
    assert cfg.class_id("Knight") == 7
    assert cfg.class_id("Warrior") == 0
    assert cfg.logging.global_level == "DEBUG"
    assert cfg.logging.module_levels == {"mmo_skills": "ERROR"}


def test_missing_config_file_uses_defaults(tmp_path: Path):
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg.skills.buff_stacking == "stack"
    assert cfg.catalog_file(root=tmp_path) == tmp_path / "mmo_skills" / "data" / "skills.yaml"
