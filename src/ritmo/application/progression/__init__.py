# Application Progression Package
from .achievements import AchievementTracker
from .ledger import ProgressionLedger
from .streak import StreakTracker

__all__ = ["AchievementTracker", "ProgressionLedger", "StreakTracker"]
