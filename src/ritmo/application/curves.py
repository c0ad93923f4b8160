"""
Default numeric curves: ease to level, ease to review interval, and the XP
level table.

Level boundaries are table-driven so they stay stable across releases.
"""

import math

from ritmo.domain.constants import (
    LEVEL_BASE_XP,
    LEVEL_COUNT,
    LEVEL_GROWTH,
    LEVEL_INTERVAL_DAYS,
    MASTERED_EASE,
    MAX_ITEM_LEVEL,
)
from ritmo.domain.progression.models import LevelBand


def ease_to_level(ease: float) -> int:
    """level = clamp(floor(ease * 2 - 2), 0, 5)"""
    return min(MAX_ITEM_LEVEL, max(0, math.floor(ease * 2 - 2)))


def default_base_interval(ease: float) -> int:
    """
    Map an ease factor to a review interval in days.

    Follows the 1/3/7/14-day ladder by item level, then grows quadratically
    past the mastery threshold. Non-decreasing in ease.
    """
    if ease >= MASTERED_EASE:
        return round(LEVEL_INTERVAL_DAYS[-1] * (ease / MASTERED_EASE) ** 2)
    return LEVEL_INTERVAL_DAYS[ease_to_level(ease)]


def level_title(level: int) -> str:
    if level <= 0:
        return "Newcomer"
    if level <= 5:
        return "Beginner"
    if level <= 10:
        return "Novice"
    if level <= 15:
        return "Intermediate"
    if level <= 20:
        return "Advanced"
    if level <= 25:
        return "Expert"
    return "Master"


def default_level_table() -> tuple[LevelBand, ...]:
    """
    Band 0 covers [0, 100). Band k >= 1 starts at floor(100 * 1.5 ** (k - 1)).
    The last band is unbounded.
    """
    thresholds = [0] + [math.floor(LEVEL_BASE_XP * LEVEL_GROWTH**i) for i in range(LEVEL_COUNT)]
    bands = []
    for index, min_xp in enumerate(thresholds):
        max_xp = thresholds[index + 1] if index + 1 < len(thresholds) else None
        bands.append(LevelBand(min_xp=min_xp, max_xp=max_xp, title=level_title(index)))
    return tuple(bands)
