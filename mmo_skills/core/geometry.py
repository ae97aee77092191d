"""Distance helpers used for range and area checks."""

from __future__ import annotations

import math
from typing import Callable

from .components.position import Position

DistanceFn = Callable[[Position, Position], float]


def euclidean_distance(a: Position, b: Position) -> float:
    """Return the straight-line distance between ``a`` and ``b``."""

    dx = a.x - b.x
    dy = a.y - b.y
    dz = a.z - b.z
    return math.sqrt(dx * dx + dy * dy + dz * dz)


__all__ = ["DistanceFn", "euclidean_distance"]
