"""components package."""

from .character import Character
from .monster import MonsterInstance
from .position import Position
from .stats import StatKind

__all__ = ["Character", "MonsterInstance", "Position", "StatKind"]
