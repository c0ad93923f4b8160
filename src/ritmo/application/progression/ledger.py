"""
Progression ledger: XP accumulation and table-driven levels.
"""

import logging
import math
from bisect import bisect_right

from ritmo.application.config import EngineConfig
from ritmo.application.events import EventDispatcher
from ritmo.domain.errors import InvalidXpAmount
from ritmo.domain.events import LevelUp
from ritmo.domain.progression.models import LevelBand, ProgressionState

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class ProgressionLedger:
    """
    Tracks a learner's XP and derives the level from the configured table.

    XP only increases. Awards commute, so they may be applied in any order,
    but each award is a read-modify-write the host must serialize.

    Args:
        xp: Starting XP loaded from the learner state.
        config: Engine configuration holding the level table and reward tables.
        dispatcher: Receives LevelUp events.
    """

    def __init__(
        self,
        xp: int = 0,
        config: EngineConfig | None = None,
        dispatcher: EventDispatcher | None = None,
    ):
        self._config = config or EngineConfig()
        self._dispatcher = dispatcher or EventDispatcher()
        self._table = self._config.level_table
        self._thresholds = [band.min_xp for band in self._table]
        self._xp = self._check_amount(xp)

    @property
    def xp(self) -> int:
        return self._xp

    def level_for(self, xp: int) -> int:
        """Index of the band with min_xp <= xp < max_xp."""
        return max(0, bisect_right(self._thresholds, xp) - 1)

    def band(self, level: int) -> LevelBand:
        return self._table[level]

    def state(self) -> ProgressionState:
        level = self.level_for(self._xp)
        band = self._table[level]
        return ProgressionState(
            xp=self._xp,
            level=level,
            level_title=band.title,
            xp_into_level=self._xp - band.min_xp,
            xp_to_next_level=None if band.max_xp is None else band.max_xp - self._xp,
        )

    def award_xp(self, amount: int, reason: str = "") -> ProgressionState:
        """
        Add XP and publish LevelUp if the level increased.

        Raises:
            InvalidXpAmount: If amount is negative or not an integer.
        """
        amount = self._check_amount(amount)
        previous_level = self.level_for(self._xp)
        self._xp += amount
        state = self.state()

        logger.debug(f"Awarded {amount} XP ({reason or 'unspecified'}), total {self._xp}")

        if state.level > previous_level:
            logger.info(f"Level up: {previous_level} -> {state.level} ({state.level_title})")
            self._dispatcher.publish(
                LevelUp(
                    new_level=state.level,
                    previous_level=previous_level,
                    title=state.level_title,
                )
            )
        return state

    def xp_reward(self, activity_kind: str, difficulty: str, was_correct: bool) -> int:
        """
        XP earned for one activity.

        base_xp(kind) * multiplier(difficulty) * (1.0 or partial credit),
        rounded half up, never negative.

        Raises:
            ValueError: Unknown activity kind or difficulty.
        """
        try:
            base = self._config.xp_base[activity_kind]
        except KeyError:
            raise ValueError(f"Unknown activity kind: {activity_kind!r}") from None
        try:
            multiplier = self._config.difficulty_multipliers[difficulty]
        except KeyError:
            raise ValueError(f"Unknown difficulty: {difficulty!r}") from None

        credit = 1.0 if was_correct else self._config.partial_credit_factor
        return max(0, round_half_up(base * multiplier * credit))

    @staticmethod
    def _check_amount(amount: object) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidXpAmount(amount)
        return amount
