"""
Daily activity streaks.

Days are UTC calendar days (see ReviewClock). All functions return new state;
nothing is mutated.
"""

import logging
from datetime import datetime

from ritmo.application.clock import ReviewClock
from ritmo.domain.constants import DEFAULT_RISK_HOUR, STREAK_MILESTONES
from ritmo.domain.errors import InvalidTimestamp
from ritmo.domain.progression.models import StreakState, StreakStatus, StreakUpdate

logger = logging.getLogger(__name__)


class StreakTracker:
    def __init__(self, risk_hour: int = DEFAULT_RISK_HOUR):
        self.risk_hour = risk_hour

    def record_activity(self, state: StreakState, as_of: datetime) -> StreakUpdate:
        """
        Record a qualifying activity at as_of.

        - first activity ever: streak 1
        - same day: unchanged
        - next day: streak + 1
        - later: streak restarts at 1

        Raises:
            InvalidTimestamp: If as_of precedes the last recorded activity.
        """
        as_of = ReviewClock.normalize(as_of)
        last = state.last_activity_at
        increased = broken = False

        if last is None:
            current = 1
            increased = True
        else:
            if as_of < last:
                raise InvalidTimestamp(
                    f"Activity at {as_of.isoformat()} precedes the last activity "
                    f"at {last.isoformat()}"
                )
            gap = ReviewClock.days_between(last, as_of)
            if gap == 0:
                current = state.current_streak
            elif gap == 1:
                current = state.current_streak + 1
                increased = True
            else:
                current = 1
                broken = state.current_streak > 0
                if broken:
                    logger.info(f"Streak of {state.current_streak} days broken after {gap} days")

        new_state = StreakState(
            current_streak=current,
            longest_streak=max(state.longest_streak, current),
            last_activity_at=as_of,
        )
        milestone = current if increased and current in STREAK_MILESTONES else None
        return StreakUpdate(state=new_state, increased=increased, broken=broken, milestone=milestone)

    def is_at_risk(self, state: StreakState, as_of: datetime) -> bool:
        """
        Advisory: a live streak has no activity today and the risk hour has passed.
        """
        if state.last_activity_at is None or state.current_streak <= 0:
            return False
        as_of = ReviewClock.normalize(as_of)
        gap = ReviewClock.days_between(state.last_activity_at, as_of)
        return gap >= 1 and as_of.hour >= self.risk_hour

    def status(self, state: StreakState, as_of: datetime) -> StreakStatus:
        if state.last_activity_at is None or state.current_streak <= 0:
            return StreakStatus.INACTIVE
        gap = ReviewClock.days_between(state.last_activity_at, as_of)
        if gap <= 0:
            return StreakStatus.ACTIVE
        if gap > 1:
            return StreakStatus.BROKEN
        if self.is_at_risk(state, as_of):
            return StreakStatus.AT_RISK
        return StreakStatus.PENDING

    def effective_streak(self, state: StreakState, as_of: datetime) -> int:
        """The streak still alive at as_of: zero once a whole day has been missed."""
        if state.last_activity_at is None:
            return 0
        if ReviewClock.days_between(state.last_activity_at, as_of) > 1:
            return 0
        return state.current_streak
