"""
Item scheduler: owns the per-item review state of one learner.

Calls for the same item must be serialized by the caller; calls for different
items are independent.
"""

import logging
from dataclasses import replace
from datetime import datetime

from ritmo.application.clock import ReviewClock
from ritmo.application.config import EngineConfig
from ritmo.application.curves import ease_to_level
from ritmo.application.ease_model import EaseModel
from ritmo.domain.constants import (
    EVENT_ID_HISTORY,
    INCORRECT_RECALL_SCORE,
    MAX_ITEM_LEVEL,
    NEUTRAL_CONFIDENCE,
)
from ritmo.domain.errors import InvalidTimestamp, ItemNotFound
from ritmo.domain.review.models import AnswerOutcome, Item

logger = logging.getLogger(__name__)


class ItemScheduler:
    """
    Applies the ease model to items on each answer and answers due-item queries.

    Args:
        items: The learner's items keyed by id. Mutated in place.
        clock: Time source used when no explicit timestamp is given.
        config: Engine configuration.
    """

    def __init__(
        self,
        items: dict[str, Item] | None = None,
        clock: ReviewClock | None = None,
        config: EngineConfig | None = None,
        ease_model: EaseModel | None = None,
    ):
        self._config = config or EngineConfig()
        self._clock = clock or ReviewClock()
        self._ease = ease_model or EaseModel(self._config)
        self.items: dict[str, Item] = items if items is not None else {}

    def add_item(self, item_id: str, now: datetime | None = None) -> Item:
        """Add a fresh item, due immediately. Existing items are returned untouched."""
        if item_id in self.items:
            return self.items[item_id]

        now = self._clock.resolve(now)
        ease = self._config.initial_ease
        item = Item(
            id=item_id,
            next_review_at=now,
            ease_factor=ease,
            level=ease_to_level(ease),
        )
        self.items[item_id] = item
        logger.debug(f"Added item {item_id}")
        return item

    def get(self, item_id: str) -> Item:
        try:
            return self.items[item_id]
        except KeyError:
            logger.warning(f"Item {item_id!r} not found in learner state")
            raise ItemNotFound(item_id) from None

    def record_answer(
        self,
        item_id: str,
        correct: bool,
        confidence: float | None = None,
        *,
        now: datetime | None = None,
        event_id: str | None = None,
    ) -> AnswerOutcome:
        """
        Apply one answer to an item.

        Not idempotent: without an event_id the caller must deliver each answer
        at most once. With an event_id, an id already applied to this item is
        ignored and the outcome has applied=False.

        Raises:
            ItemNotFound: Unknown item id.
            InvalidTimestamp: now is malformed or precedes the last review.
        """
        item = self.get(item_id)
        now = self._clock.resolve(now)

        if event_id is not None and event_id in item.applied_event_ids:
            logger.info(f"Answer event {event_id} already applied to {item_id}, skipping")
            return AnswerOutcome(
                item=item, correct=correct, previous_level=item.level, applied=False
            )

        if item.last_reviewed_at is not None and now < item.last_reviewed_at:
            raise InvalidTimestamp(
                f"Answer for {item_id} at {now.isoformat()} precedes its last review "
                f"at {item.last_reviewed_at.isoformat()}"
            )

        confidence = NEUTRAL_CONFIDENCE if confidence is None else min(1.0, max(0.0, confidence))
        transition = self._ease.next_state(
            correct, item.ease_factor, item.consecutive_correct, now
        )

        previous_level = item.level
        was_mastered = item.mastered

        item.ease_factor = transition.ease_factor
        item.consecutive_correct = transition.consecutive_correct
        item.next_review_at = transition.next_review_at
        item.level = transition.level
        item.mastered = correct and transition.level == MAX_ITEM_LEVEL
        item.last_reviewed_at = now
        item.review_count += 1
        item.correct_count += int(correct)
        item.recall_score = confidence if correct else INCORRECT_RECALL_SCORE
        if event_id is not None:
            item.applied_event_ids = (item.applied_event_ids + (event_id,))[-EVENT_ID_HISTORY:]

        became_mastered = item.mastered and not was_mastered
        if became_mastered:
            logger.info(f"Item {item_id} mastered")
        elif was_mastered and not item.mastered:
            logger.info(f"Item {item_id} lost mastery")

        return AnswerOutcome(
            item=item,
            correct=correct,
            previous_level=previous_level,
            became_mastered=became_mastered,
            interval_days=transition.interval_days,
        )

    def due_items(self, as_of: datetime | None = None) -> list[Item]:
        """Items with next_review_at <= as_of, ordered by due time then id."""
        as_of = self._clock.resolve(as_of)
        due = [item for item in self.items.values() if item.is_due(as_of)]
        return sorted(due, key=lambda i: (i.next_review_at, i.id))

    def is_mastered(self, item_id: str) -> bool:
        return self.get(item_id).mastered

    def reset_item(self, item_id: str, now: datetime | None = None) -> Item:
        """
        Return an item to its initial state, due immediately.

        The only way to clear mastery other than an incorrect answer.
        """
        item = self.get(item_id)
        now = self._clock.resolve(now)
        fresh = replace(
            item,
            ease_factor=self._config.initial_ease,
            consecutive_correct=0,
            next_review_at=now,
            level=ease_to_level(self._config.initial_ease),
            mastered=False,
            recall_score=None,
        )
        self.items[item_id] = fresh
        logger.info(f"Reset item {item_id}")
        return fresh
