"""
Learner engine: the host-facing entry point.

Wires one learner's answer events through the scheduler, the progression
ledger, the streak tracker and the achievement catalogue. All operations are
synchronous and in-memory; the host loads the LearnerState beforehand and
persists it afterwards.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from ritmo.application.clock import ReviewClock
from ritmo.application.config import EngineConfig
from ritmo.application.events import EventDispatcher
from ritmo.application.progression import AchievementTracker, ProgressionLedger, StreakTracker
from ritmo.application.schedule_aggregator import ReviewScheduleAggregator
from ritmo.application.scheduler import ItemScheduler
from ritmo.application.session_optimizer import SessionOptimizer, StudySession
from ritmo.domain.constants import (
    CALENDAR_DAYS,
    MASTERY_XP,
    STREAK_DAY_XP,
    STREAK_MILESTONE_XP_PER_DAY,
)
from ritmo.domain.events import AchievementUnlocked, ItemMastered, StreakAtRisk
from ritmo.domain.progression.models import ProgressionState, StreakStatus, StreakUpdate
from ritmo.domain.review.models import (
    AnswerOutcome,
    Item,
    ReviewCalendarDay,
    ReviewPerformance,
    ReviewSchedule,
)
from ritmo.domain.state import LearnerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnswerResult:
    outcome: AnswerOutcome
    xp_awarded: int
    progression: ProgressionState
    streak: StreakUpdate | None = None


class LearnerEngine:
    """
    One learner's scheduling and progression engine.

    Args:
        state: The learner aggregate; mutated in place.
        config: Engine configuration.
        clock: Time source for calls without an explicit timestamp.
        dispatcher: Receives LevelUp, ItemMastered, StreakAtRisk and
            AchievementUnlocked events.
    """

    def __init__(
        self,
        state: LearnerState,
        config: EngineConfig | None = None,
        clock: ReviewClock | None = None,
        dispatcher: EventDispatcher | None = None,
    ):
        self.state = state
        self.config = config or EngineConfig()
        self.clock = clock or ReviewClock()
        self.events = dispatcher or EventDispatcher()

        self.scheduler = ItemScheduler(state.items, self.clock, self.config)
        self.ledger = ProgressionLedger(state.xp, self.config, self.events)
        self.streaks = StreakTracker(self.config.risk_hour)
        self.achievements = AchievementTracker(state.achievements)
        self.aggregator = ReviewScheduleAggregator()
        self.optimizer = SessionOptimizer()

    # ------------------------------------------------------------------
    # Inbound operations
    # ------------------------------------------------------------------

    def add_item(self, item_id: str, now: datetime | None = None) -> Item:
        return self.scheduler.add_item(item_id, now)

    def record_answer(
        self,
        item_id: str,
        correct: bool,
        confidence: float | None = None,
        *,
        activity_kind: str = "flashcard",
        difficulty: str = "beginner",
        now: datetime | None = None,
        event_id: str | None = None,
    ) -> AnswerResult:
        """
        Apply one answer and everything that follows from it.

        The reward is validated before any state changes, so an unknown
        activity kind or difficulty leaves the learner untouched.
        """
        now = self.clock.resolve(now)
        reward = self.ledger.xp_reward(activity_kind, difficulty, correct)

        # Answers for different items may arrive out of order. One older than
        # the last recorded activity falls on a day the streak already counts.
        last_activity = self.state.streak.last_activity_at
        counts_for_streak = last_activity is None or now >= last_activity

        outcome = self.scheduler.record_answer(
            item_id, correct, confidence, now=now, event_id=event_id
        )
        if not outcome.applied:
            return AnswerResult(outcome=outcome, xp_awarded=0, progression=self.ledger.state())

        self.state.total_reviews += 1
        self.state.correct_reviews += int(correct)

        xp_before = self.ledger.xp
        self._award(reward, f"{activity_kind} answer ({difficulty})")

        if outcome.became_mastered:
            self.events.publish(ItemMastered(item_id=item_id))
            self._award(MASTERY_XP, "Flashcard mastered")

        if counts_for_streak:
            streak = self.record_activity(now)
        else:
            streak = None
            self._check_achievements(now)

        return AnswerResult(
            outcome=outcome,
            xp_awarded=self.ledger.xp - xp_before,
            progression=self.ledger.state(),
            streak=streak,
        )

    def record_activity(self, as_of: datetime | None = None) -> StreakUpdate:
        """Record a day of activity; a growing streak earns XP, more on milestone days."""
        as_of = self.clock.resolve(as_of)
        update = self.streaks.record_activity(self.state.streak, as_of)
        self.state.streak = update.state

        if update.increased and update.state.current_streak > 1:
            if update.milestone:
                self._award(
                    STREAK_MILESTONE_XP_PER_DAY * update.milestone,
                    f"Streak milestone: {update.milestone} days",
                )
            else:
                self._award(STREAK_DAY_XP, f"Daily streak: {update.state.current_streak} days")

        self._check_achievements(as_of)
        return update

    def award_xp(self, amount: int, reason: str = "") -> ProgressionState:
        self._award(amount, reason)
        self._check_achievements(self.clock.now())
        return self.ledger.state()

    def reset_item(self, item_id: str, now: datetime | None = None) -> Item:
        return self.scheduler.reset_item(item_id, now)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def due_items(self, as_of: datetime | None = None) -> list[Item]:
        return self.scheduler.due_items(as_of)

    def is_mastered(self, item_id: str) -> bool:
        return self.scheduler.is_mastered(item_id)

    def schedule(self, as_of: datetime | None = None) -> ReviewSchedule:
        return self.aggregator.schedule(self.state.items.values(), self.clock.resolve(as_of))

    def calendar(
        self, as_of: datetime | None = None, days: int = CALENDAR_DAYS
    ) -> list[ReviewCalendarDay]:
        return self.aggregator.calendar(self.state.items.values(), self.clock.resolve(as_of), days)

    def performance(self, as_of: datetime | None = None) -> ReviewPerformance:
        as_of = self.clock.resolve(as_of)
        return self.aggregator.performance(
            total_reviews=self.state.total_reviews,
            correct_reviews=self.state.correct_reviews,
            streak_days=self.streaks.effective_streak(self.state.streak, as_of),
        )

    def progression(self) -> ProgressionState:
        return self.ledger.state()

    def check_streak(self, as_of: datetime | None = None) -> StreakStatus:
        """Streak status at as_of; publishes StreakAtRisk when the streak is at risk."""
        as_of = self.clock.resolve(as_of)
        status = self.streaks.status(self.state.streak, as_of)
        if status is StreakStatus.AT_RISK:
            self.events.publish(StreakAtRisk(current_streak=self.state.streak.current_streak))
        return status

    def session_queue(self, as_of: datetime | None = None, limit: int | None = None) -> list[Item]:
        return self.optimizer.prioritize(
            self.state.items.values(), self.clock.resolve(as_of), limit
        )

    def recommended_sessions(self, as_of: datetime | None = None) -> list[StudySession]:
        return self.optimizer.recommended_sessions(
            self.state.items.values(), self.clock.resolve(as_of)
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _award(self, amount: int, reason: str) -> None:
        self.ledger.award_xp(amount, reason)
        self.state.xp = self.ledger.xp

    def _metrics(self) -> dict[str, int]:
        return {
            "reviews": self.state.total_reviews,
            "correct_reviews": self.state.correct_reviews,
            "streak": self.state.streak.current_streak,
            "level": self.ledger.level_for(self.ledger.xp),
        }

    def _check_achievements(self, as_of: datetime) -> None:
        # Achievement XP can raise the level, which can unlock more achievements.
        newly = self.achievements.evaluate(self._metrics(), as_of)
        while newly:
            for achievement in newly:
                self.events.publish(
                    AchievementUnlocked(
                        achievement_id=achievement.id,
                        title=achievement.title,
                        points=achievement.points,
                    )
                )
                self._award(achievement.points, f"Achievement: {achievement.title}")
            newly = self.achievements.evaluate(self._metrics(), as_of)
