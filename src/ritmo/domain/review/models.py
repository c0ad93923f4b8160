"""
Domain models for item review state.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from ritmo.domain.constants import INITIAL_EASE


@dataclass
class Item:
    """
    Review state of a single flashcard or practice question.

    Owned by exactly one learner and mutated only by the ItemScheduler.

    Attributes:
        id: Identifier, unique within a learner's item set.
        ease_factor: How easy the item has been historically (floor 1.3).
        consecutive_correct: Current run of correct answers.
        next_review_at: Earliest moment the item becomes due (UTC).
        level: 0-5, projected from the ease factor.
        mastered: Level 5 reached with a correct last answer.
    """

    id: str
    next_review_at: datetime
    ease_factor: float = INITIAL_EASE
    consecutive_correct: int = 0
    level: int = 3
    mastered: bool = False

    # History
    last_reviewed_at: datetime | None = None
    review_count: int = 0
    correct_count: int = 0
    recall_score: float | None = None  # Last per-item performance signal (0.0-1.0)

    # Recent answer-event ids, oldest first
    applied_event_ids: tuple[str, ...] = field(default_factory=tuple)

    def is_due(self, as_of: datetime) -> bool:
        return self.next_review_at <= as_of


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of recording one answer against an item."""

    item: Item
    correct: bool
    previous_level: int
    became_mastered: bool = False
    applied: bool = True  # False when the answer-event id was already applied
    interval_days: int = 0


@dataclass(frozen=True)
class ReviewSchedule:
    """Due-bucket counts. Buckets are disjoint."""

    due_today: int = 0
    due_this_week: int = 0
    due_next_week: int = 0

    @property
    def total(self) -> int:
        return self.due_today + self.due_this_week + self.due_next_week


@dataclass(frozen=True)
class ReviewCalendarDay:
    day: date
    count: int


@dataclass(frozen=True)
class ReviewPerformance:
    """
    Aggregate review counters for a learner.

    Attributes:
        total_reviews: Answers recorded (monotonic).
        correct_reviews: Correct answers recorded (monotonic).
        streak_days: Effective daily streak at query time.
    """

    total_reviews: int = 0
    correct_reviews: int = 0
    streak_days: int = 0

    @property
    def efficiency(self) -> float:
        """Percentage of correct reviews (0.0 when nothing was reviewed)."""
        if self.total_reviews == 0:
            return 0.0
        return self.correct_reviews / self.total_reviews * 100
