"""Skill server bootstrap and buff tick loop."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from dotenv import load_dotenv

from .config import CONFIG_PATH, Config, LoggingConfig, load_config
from .core.time_manager import TimeManager
from .engine import SkillEngine, build_engine

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MMO_SKILLS_CONFIG"


def configure_logging(cfg: LoggingConfig) -> None:
    """Apply the global and per-module log levels from ``cfg``."""

    numeric_level = getattr(logging, cfg.global_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    for module_name, level_str in cfg.module_levels.items():
        module_numeric_level = getattr(logging, str(level_str).upper(), None)
        if isinstance(module_numeric_level, int):
            logging.getLogger(module_name).setLevel(module_numeric_level)
        else:
            logger.warning("Invalid log level '%s' for module '%s' in config.", level_str, module_name)


def resolve_config_path() -> Path:
    """Return the config path, honouring ``MMO_SKILLS_CONFIG``."""

    override = os.getenv(CONFIG_ENV_VAR)
    return Path(override) if override else CONFIG_PATH


def run(
    engine: SkillEngine,
    time_manager: TimeManager,
    *,
    max_ticks: int | None = None,
    stop: threading.Event | None = None,
) -> int:
    """Advance the buff ledger once per tick until stopped.

    Returns the number of ticks processed.
    """

    ticks = 0
    while max_ticks is None or ticks < max_ticks:
        if stop is not None and stop.is_set():
            break
        delta = time_manager.sleep_until_next_tick()
        try:
            engine.tick(delta)
        except Exception as exc:
            logger.error("Buff tick %d failed: %s", time_manager.tick_counter, exc, exc_info=True)
        ticks += 1
    return ticks


def bootstrap(config: Config) -> SkillEngine:
    """Build the engine from ``config`` and restore persisted buffs."""

    audit = (config.paths or {}).get("event_log")
    engine = build_engine(config, audit=audit)
    restored = engine.restore()
    logger.info("SkillManager initialized: %d templates, %d buffs restored", len(engine.templates), restored)
    return engine


def main() -> None:
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config = load_config(resolve_config_path())
    configure_logging(config.logging)

    engine = bootstrap(config)
    tm = TimeManager(tick_rate=config.server.tick_rate)
    try:
        run(engine, tm)
    except KeyboardInterrupt:
        logger.info("Shutting down after %d ticks", tm.tick_counter)


if __name__ == "__main__":
    main()
