"""Position component."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Position:
    """World coordinate. ``z`` defaults to ground level."""

    x: float
    y: float
    z: float = 0.0


__all__ = ["Position"]
