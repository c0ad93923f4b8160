"""
Ease model: the SM-2-family state transition for one item.

This is a pure computation module with no I/O. It never raises; every input
is coerced into the valid domain.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from ritmo.application.config import EngineConfig
from ritmo.application.curves import ease_to_level
from ritmo.domain.constants import EASE_BONUS_STEPS, EASE_PENALTY, EASE_PRECISION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EaseTransition:
    ease_factor: float
    consecutive_correct: int
    interval_days: int
    next_review_at: datetime
    level: int


def ease_bonus(consecutive_correct: int) -> float:
    """Non-decreasing step function of the correct streak, capped at the last step."""
    bonus = 0.0
    for min_streak, step in EASE_BONUS_STEPS:
        if consecutive_correct >= min_streak:
            bonus = step
    return bonus


class EaseModel:
    """
    Computes the next ease factor, interval and level for an answer.

    Stateless and side-effect free.
    """

    def __init__(self, config: EngineConfig | None = None):
        self._config = config or EngineConfig()

    def clamp(self, ease: float) -> float:
        if math.isnan(ease):
            return self._config.initial_ease
        return min(self._config.ease_ceiling, max(self._config.ease_floor, ease))

    def next_state(
        self,
        correct: bool,
        prior_ease: float,
        prior_consecutive_correct: int,
        now: datetime,
    ) -> EaseTransition:
        prior_ease = self.clamp(float(prior_ease))
        prior_consecutive_correct = max(0, int(prior_consecutive_correct))

        if correct:
            consecutive = prior_consecutive_correct + 1
            ease = prior_ease + ease_bonus(consecutive)
        else:
            consecutive = 0
            ease = prior_ease - EASE_PENALTY

        ease = self.clamp(round(ease, EASE_PRECISION))
        interval = self.interval_for(ease)

        logger.debug(
            f"correct={correct} ease {prior_ease} -> {ease}, "
            f"streak {prior_consecutive_correct} -> {consecutive}, interval {interval}d"
        )

        return EaseTransition(
            ease_factor=ease,
            consecutive_correct=consecutive,
            interval_days=interval,
            next_review_at=now + timedelta(days=interval),
            level=ease_to_level(ease),
        )

    def interval_for(self, ease: float) -> int:
        """Review interval in whole days, at least one."""
        days = self._config.base_interval(ease)
        if not math.isfinite(days):
            return 1
        return max(1, int(days))
