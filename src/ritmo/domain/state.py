"""
The per-learner aggregate the host loads before calling the engine and
persists afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime

from ritmo.domain.progression.models import StreakState
from ritmo.domain.review.models import Item


@dataclass
class LearnerState:
    learner_id: str
    items: dict[str, Item] = field(default_factory=dict)
    xp: int = 0
    streak: StreakState = field(default_factory=StreakState)

    # Review counters (monotonic)
    total_reviews: int = 0
    correct_reviews: int = 0

    # achievement id -> unlock time
    achievements: dict[str, datetime] = field(default_factory=dict)
