"""Per-entity locks acquired in a fixed global order."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Tuple

CHARACTER = "character"
MONSTER = "monster"

LockKey = Tuple[str, int]


def character_key(character_id: int) -> LockKey:
    return (CHARACTER, character_id)


def monster_key(monster_id: int) -> LockKey:
    return (MONSTER, monster_id)


class LockRegistry:
    """Hand out one re-entrant lock per entity key.

    :meth:`hold` always acquires keys sorted by ``(kind, id)`` so that two
    operations touching overlapping entity sets cannot deadlock.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[LockKey, threading.RLock] = {}

    def lock_for(self, key: LockKey) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[LockKey]) -> Iterator[List[LockKey]]:
        """Acquire every lock in ``keys`` in global order for the block."""

        ordered = sorted(set(keys))
        acquired: List[threading.RLock] = []
        try:
            for key in ordered:
                lock = self.lock_for(key)
                lock.acquire()
                acquired.append(lock)
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()

    def forget(self, key: LockKey) -> None:
        """Drop the lock for ``key`` (e.g. when a character logs out)."""

        with self._guard:
            self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


__all__ = [
    "CHARACTER",
    "MONSTER",
    "LockKey",
    "LockRegistry",
    "character_key",
    "monster_key",
]
