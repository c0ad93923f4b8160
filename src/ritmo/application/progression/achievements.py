"""
Milestone achievements.

Each achievement unlocks at most once. The tracker only decides what unlocks;
awarding the points is the engine's job.
"""

import logging
from collections.abc import Mapping
from datetime import datetime

from ritmo.domain.progression.models import Achievement

logger = logging.getLogger(__name__)

ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement("first_question", "First Steps", "Answer your first question", "reviews", 1, 10),
    Achievement("questions_10", "Curious Mind", "Answer 10 questions correctly", "correct_reviews", 10, 20),
    Achievement("questions_50", "Knowledge Seeker", "Answer 50 questions correctly", "correct_reviews", 50, 100),
    Achievement("questions_100", "Knowledge Master", "Answer 100 questions correctly", "correct_reviews", 100, 200),
    Achievement("reviews_10", "Review Novice", "Complete 10 spaced repetition reviews", "reviews", 10, 30),
    Achievement("reviews_50", "Review Expert", "Complete 50 spaced repetition reviews", "reviews", 50, 150),
    Achievement("streak_3", "Consistency Beginner", "Maintain a 3-day learning streak", "streak", 3, 30),
    Achievement("streak_7", "Week Warrior", "Maintain a 7-day learning streak", "streak", 7, 70),
    Achievement("streak_30", "Monthly Devotion", "Maintain a 30-day learning streak", "streak", 30, 300),
    Achievement("level_5", "Rising Star", "Reach level 5", "level", 5, 50),
    Achievement("level_10", "Learning Prodigy", "Reach level 10", "level", 10, 100),
    Achievement("level_20", "Learning Legend", "Reach level 20", "level", 20, 200),
)


class AchievementTracker:
    """
    Evaluates the achievement catalogue against a learner's counters.

    Args:
        unlocked: achievement id -> unlock time, shared with the learner state.
        catalogue: Achievements to evaluate.
    """

    def __init__(
        self,
        unlocked: dict[str, datetime] | None = None,
        catalogue: tuple[Achievement, ...] = ACHIEVEMENTS,
    ):
        self.unlocked: dict[str, datetime] = unlocked if unlocked is not None else {}
        self._catalogue = catalogue

    @property
    def catalogue(self) -> tuple[Achievement, ...]:
        return self._catalogue

    def evaluate(self, metrics: Mapping[str, int], as_of: datetime) -> list[Achievement]:
        """
        Unlock every achievement whose metric reached its threshold.

        Returns only the achievements unlocked by this call. Metrics missing
        from the mapping count as zero.
        """
        newly: list[Achievement] = []
        for achievement in self._catalogue:
            if achievement.id in self.unlocked:
                continue
            if metrics.get(achievement.metric, 0) >= achievement.required_value:
                self.unlocked[achievement.id] = as_of
                newly.append(achievement)
                logger.info(f"Achievement unlocked: {achievement.id}")
        return newly

    def progress(self, metrics: Mapping[str, int]) -> dict[str, float]:
        """Completion fraction (0.0-1.0) per achievement id."""
        return {
            a.id: 1.0
            if a.id in self.unlocked
            else min(1.0, metrics.get(a.metric, 0) / a.required_value)
            for a in self._catalogue
        }
