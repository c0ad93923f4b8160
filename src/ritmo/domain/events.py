"""
Outbound events raised by the engine.

They are consumed by notification and UI collaborators outside this package.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LevelUp:
    new_level: int
    previous_level: int
    title: str


@dataclass(frozen=True)
class ItemMastered:
    item_id: str


@dataclass(frozen=True)
class StreakAtRisk:
    current_streak: int


@dataclass(frozen=True)
class AchievementUnlocked:
    achievement_id: str
    title: str
    points: int


EngineEvent = LevelUp | ItemMastered | StreakAtRisk | AchievementUnlocked
