"""
Session optimizer for ordering a study session.

Reorders the due set by recent per-item performance. It only decides order;
due dates stay exactly as the scheduler set them.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ritmo.application.clock import ReviewClock
from ritmo.domain.constants import MINUTES_PER_CARD, NEUTRAL_CONFIDENCE, UPCOMING_WINDOW_DAYS
from ritmo.domain.review.models import Item


@dataclass(frozen=True)
class StudySession:
    """A suggested block of study."""

    priority: str  # "high" or "medium"
    title: str
    description: str
    item_count: int
    duration_minutes: int


def _weakness_key(item: Item) -> tuple:
    score = NEUTRAL_CONFIDENCE if item.recall_score is None else item.recall_score
    return (score, item.ease_factor, item.next_review_at, item.id)


class SessionOptimizer:
    def prioritize(
        self, items: Iterable[Item], as_of: datetime, limit: int | None = None
    ) -> list[Item]:
        """
        Due items, weakest first.

        Order: lowest recall score (unknown counts as neutral), then lowest
        ease, then the scheduler's own order (due time, id).
        """
        as_of = ReviewClock.normalize(as_of)
        ordered = sorted((i for i in items if i.is_due(as_of)), key=_weakness_key)
        if limit is not None:
            ordered = ordered[: max(0, limit)]
        return ordered

    def recommended_sessions(self, items: Iterable[Item], as_of: datetime) -> list[StudySession]:
        as_of = ReviewClock.normalize(as_of)
        items = list(items)
        sessions: list[StudySession] = []

        due_now = [i for i in items if i.is_due(as_of)]
        if due_now:
            sessions.append(
                StudySession(
                    priority="high",
                    title="Review Due Cards",
                    description=f"{len(due_now)} cards need review today",
                    item_count=len(due_now),
                    duration_minutes=math.ceil(len(due_now) * MINUTES_PER_CARD),
                )
            )

        horizon = as_of + timedelta(days=UPCOMING_WINDOW_DAYS)
        upcoming = [i for i in items if as_of < i.next_review_at <= horizon]
        if upcoming:
            sessions.append(
                StudySession(
                    priority="medium",
                    title="Upcoming Reviews",
                    description=f"{len(upcoming)} cards due in the next {UPCOMING_WINDOW_DAYS} days",
                    item_count=len(upcoming),
                    duration_minutes=math.ceil(len(upcoming) * MINUTES_PER_CARD),
                )
            )

        return sessions
