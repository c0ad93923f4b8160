"""
Domain models for learner progression: XP levels, streaks and achievements.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class LevelBand:
    """
    One row of the level table.

    Attributes:
        min_xp: Inclusive lower bound.
        max_xp: Exclusive upper bound, None for the last (unbounded) band.
        title: Display title for learners in this band.
    """

    min_xp: int
    max_xp: int | None
    title: str

    def contains(self, xp: int) -> bool:
        return self.min_xp <= xp and (self.max_xp is None or xp < self.max_xp)


@dataclass(frozen=True)
class ProgressionState:
    """
    XP and the level derived from it.

    Invariant: level is the index of the band containing xp.
    """

    xp: int = 0
    level: int = 0
    level_title: str = ""
    xp_into_level: int = 0
    xp_to_next_level: int | None = None  # None at the top band

    @property
    def progress(self) -> float:
        """Fraction of the current band completed (1.0 at the top band)."""
        if self.xp_to_next_level is None:
            return 1.0
        span = self.xp_into_level + self.xp_to_next_level
        return self.xp_into_level / span if span else 1.0


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_at: datetime | None = None


@dataclass(frozen=True)
class StreakUpdate:
    """Result of recording a day of activity."""

    state: StreakState
    increased: bool = False
    broken: bool = False
    milestone: int | None = None


class StreakStatus(str, Enum):
    INACTIVE = "inactive"  # Never active, or nothing to lose
    ACTIVE = "active"  # Activity recorded today
    PENDING = "pending"  # Yesterday was active, today not yet, before the risk hour
    AT_RISK = "at_risk"  # Same as pending, past the risk hour
    BROKEN = "broken"  # More than one day missed


@dataclass(frozen=True)
class Achievement:
    """
    A milestone that unlocks once.

    Attributes:
        id: Stable identifier (e.g. "streak_7").
        metric: Counter it tracks: reviews, correct_reviews, streak or level.
        required_value: Threshold on that counter.
        points: XP awarded on unlock.
    """

    id: str
    title: str
    description: str
    metric: str
    required_value: int
    points: int
