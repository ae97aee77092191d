"""Cast target variants.

A cast names its target as one of:

* :class:`EntityTarget` - a monster or character id
* :class:`PointTarget` - a ground position (area skills)
* :class:`DirectionTarget` - a facing vector
* ``None`` - no explicit target (self or untargeted skills)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from .components.position import Position


@dataclass(frozen=True)
class EntityTarget:
    entity_id: int


@dataclass(frozen=True)
class PointTarget:
    position: Position


@dataclass(frozen=True)
class DirectionTarget:
    vector: Position


Target = Optional[Union[EntityTarget, PointTarget, DirectionTarget]]


def coerce_target(value: Any) -> Target:
    """Normalise ``value`` into a :data:`Target`.

    Integers are treated as entity ids, with ``0`` meaning no target.
    """

    if value is None or isinstance(value, (EntityTarget, PointTarget, DirectionTarget)):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Unsupported target value: {value!r}")
    if isinstance(value, int):
        return None if value == 0 else EntityTarget(value)
    if isinstance(value, Position):
        return PointTarget(value)
    raise TypeError(f"Unsupported target value: {value!r}")


__all__ = [
    "EntityTarget",
    "PointTarget",
    "DirectionTarget",
    "Target",
    "coerce_target",
]
