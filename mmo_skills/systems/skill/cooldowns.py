"""Timestamp-based skill cooldowns."""

from __future__ import annotations

from typing import Optional


def cooldown_remaining(last_cast_time: Optional[float], cooldown: float, now: float) -> float:
    """Return seconds until a skill last cast at ``last_cast_time`` is ready.

    A skill that was never cast (``None``) is always ready.
    """

    if last_cast_time is None or cooldown <= 0:
        return 0.0
    return max(0.0, last_cast_time + cooldown - now)


def is_ready(last_cast_time: Optional[float], cooldown: float, now: float) -> bool:
    """Return ``True`` once ``now`` reaches ``last_cast_time + cooldown``.

    The ready time is compared directly rather than the elapsed interval so
    that ``now == last_cast_time + cooldown`` is ready for any float inputs.
    """

    if last_cast_time is None:
        return True
    return now >= last_cast_time + cooldown


__all__ = ["cooldown_remaining", "is_ready"]
