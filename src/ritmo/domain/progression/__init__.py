# Domain Progression Package
from .models import (
    Achievement,
    LevelBand,
    ProgressionState,
    StreakState,
    StreakStatus,
    StreakUpdate,
)

__all__ = [
    "Achievement",
    "LevelBand",
    "ProgressionState",
    "StreakState",
    "StreakStatus",
    "StreakUpdate",
]
