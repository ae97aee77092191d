"""JSON-lines audit log for skill events.

Each line holds one ``{"tick", "event_type", "data"}`` object. Once the file
reaches the configured retention size (``cache.log_retention_mb``) its
contents are gzipped aside under a UTC timestamp and the file starts over.
"""

from __future__ import annotations

import gzip
import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from ..config import CONFIG

logger = logging.getLogger(__name__)

SKILL_CAST = "SKILL_CAST"
SKILL_LEARNED = "SKILL_LEARNED"
BUFF_EXPIRED = "BUFF_EXPIRED"

DEFAULT_RETENTION_MB = 50
_MB = 1024 * 1024

EventSink = Union[str, Path, List[Dict[str, Any]]]


def _log_retention_bytes() -> int:
    setting = (CONFIG.cache or {}).get("log_retention_mb", DEFAULT_RETENTION_MB)
    try:
        return int(setting) * _MB
    except (TypeError, ValueError):
        logger.warning("Invalid cache.log_retention_mb %r, using %d", setting, DEFAULT_RETENTION_MB)
        return DEFAULT_RETENTION_MB * _MB


def _archive(path: Path) -> Path:
    """Gzip the current contents of ``path`` beside it and truncate ``path``."""

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M")
    archive = path.with_name(f"{path.stem}_{stamp}{path.suffix}.gz")
    with open(path, "rb") as src, gzip.open(archive, "wb") as dst:
        shutil.copyfileobj(src, dst)
    path.write_bytes(b"")
    logger.info("Archived skill event log to %s", archive)
    return archive


def append_event(dest: EventSink, tick: float, event_type: str, data: Any) -> None:
    """Record one event in ``dest``, a log file path or an in-memory list."""

    event = {"tick": tick, "event_type": event_type, "data": data}
    if isinstance(dest, list):
        dest.append(event)
        return

    path = Path(dest)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.is_file() and path.stat().st_size >= _log_retention_bytes():
        _archive(path)
    line = json.dumps(event, ensure_ascii=False)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(line + "\n")


def iter_events(path: str | Path, event_type: Optional[str] = None) -> Iterator[Dict[str, Any]]:
    """Yield the events logged at ``path`` in write order.

    Only events of ``event_type`` are yielded when it is given. Blank lines
    and lines that are not valid JSON (a torn final write) are skipped.
    """

    path = Path(path)
    if not path.is_file():
        return
    with path.open("r", encoding="utf-8") as fh:
        for number, raw in enumerate(fh, start=1):
            if not raw.strip():
                continue
            try:
                event = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("Skipping unreadable line %d in %s", number, path)
                continue
            if event_type is None or event.get("event_type") == event_type:
                yield event


class EventLog:
    """File-backed event sink bound to one path."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def append(self, tick: float, event_type: str, data: Any) -> None:
        append_event(self.path, tick, event_type, data)

    def events(self, event_type: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        return iter_events(self.path, event_type)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return self.events()


__all__ = [
    "EventLog",
    "EventSink",
    "append_event",
    "iter_events",
    "SKILL_CAST",
    "SKILL_LEARNED",
    "BUFF_EXPIRED",
]
