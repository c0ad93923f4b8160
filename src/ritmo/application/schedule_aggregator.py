"""
Review schedule aggregation: due buckets, calendar view and performance.

This is a pure computation module with no I/O. Nothing here is persisted;
every view is recomputed from the current items.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta

from ritmo.application.clock import ONE_DAY, ReviewClock
from ritmo.domain.constants import CALENDAR_DAYS, WEEK_DAYS
from ritmo.domain.review.models import (
    Item,
    ReviewCalendarDay,
    ReviewPerformance,
    ReviewSchedule,
)


class ReviewScheduleAggregator:
    """
    Buckets a learner's items by calendar day (UTC) relative to as_of.

    - due_today: anything before tomorrow's midnight, overdue included
    - due_this_week: the next seven days (day 1 to day 7)
    - due_next_week: the seven days after that (day 8 to day 14)

    Items due later than that fall into no bucket.
    """

    def schedule(self, items: Iterable[Item], as_of: datetime) -> ReviewSchedule:
        start = ReviewClock.start_of_day(as_of)
        tomorrow = start + ONE_DAY
        week_end = tomorrow + timedelta(days=WEEK_DAYS)
        next_week_end = week_end + timedelta(days=WEEK_DAYS)

        due_today = due_this_week = due_next_week = 0
        for item in items:
            due = item.next_review_at
            if due < tomorrow:
                due_today += 1
            elif due < week_end:
                due_this_week += 1
            elif due < next_week_end:
                due_next_week += 1

        return ReviewSchedule(
            due_today=due_today,
            due_this_week=due_this_week,
            due_next_week=due_next_week,
        )

    def calendar(
        self, items: Iterable[Item], as_of: datetime, days: int = CALENDAR_DAYS
    ) -> list[ReviewCalendarDay]:
        """
        Forward-looking per-day counts, starting today.

        Overdue items are counted on today. Every day in the window is present,
        including days with nothing due.
        """
        today = ReviewClock.normalize(as_of).date()
        counts: Counter = Counter()
        for item in items:
            day = max(ReviewClock.normalize(item.next_review_at).date(), today)
            counts[day] += 1

        window = [today + timedelta(days=offset) for offset in range(max(0, days))]
        return [ReviewCalendarDay(day=day, count=counts[day]) for day in window]

    def performance(
        self,
        total_reviews: int,
        correct_reviews: int,
        streak_days: int,
    ) -> ReviewPerformance:
        return ReviewPerformance(
            total_reviews=total_reviews,
            correct_reviews=correct_reviews,
            streak_days=streak_days,
        )

