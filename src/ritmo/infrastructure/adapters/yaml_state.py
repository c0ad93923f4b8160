"""
YAML learner state repository: infrastructure adapter for one-file-per-learner
storage.

Implements LearnerStateRepository. Timestamps are stored as ISO-8601 strings
in UTC.
"""

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from ritmo.application.clock import parse_timestamp
from ritmo.domain.ports import LearnerStateRepository
from ritmo.domain.progression.models import StreakState
from ritmo.domain.review.models import Item
from ritmo.domain.state import LearnerState

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class StateFileError(ValueError):
    """The state file exists but cannot be interpreted."""


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return parse_timestamp(value.isoformat())
    return parse_timestamp(str(value))


def item_to_dict(item: Item) -> dict[str, Any]:
    return {
        "id": item.id,
        "ease_factor": item.ease_factor,
        "consecutive_correct": item.consecutive_correct,
        "next_review_at": _ts(item.next_review_at),
        "level": item.level,
        "mastered": item.mastered,
        "last_reviewed_at": _ts(item.last_reviewed_at),
        "review_count": item.review_count,
        "correct_count": item.correct_count,
        "recall_score": item.recall_score,
        "applied_event_ids": list(item.applied_event_ids),
    }


def item_from_dict(data: dict[str, Any]) -> Item:
    recall = data.get("recall_score")
    next_review_at = _parse_ts(data.get("next_review_at"))
    if next_review_at is None:
        raise ValueError(f"Item {data.get('id')!r} has no next_review_at")
    return Item(
        id=str(data["id"]),
        next_review_at=next_review_at,
        ease_factor=float(data.get("ease_factor", 2.5)),
        consecutive_correct=int(data.get("consecutive_correct", 0)),
        level=int(data.get("level", 3)),
        mastered=bool(data.get("mastered", False)),
        last_reviewed_at=_parse_ts(data.get("last_reviewed_at")),
        review_count=int(data.get("review_count", 0)),
        correct_count=int(data.get("correct_count", 0)),
        recall_score=float(recall) if recall is not None else None,
        applied_event_ids=tuple(str(e) for e in data.get("applied_event_ids") or ()),
    )


def state_to_dict(state: LearnerState) -> dict[str, Any]:
    return {
        "version": SCHEMA_VERSION,
        "learner_id": state.learner_id,
        "xp": state.xp,
        "total_reviews": state.total_reviews,
        "correct_reviews": state.correct_reviews,
        "streak": {
            "current_streak": state.streak.current_streak,
            "longest_streak": state.streak.longest_streak,
            "last_activity_at": _ts(state.streak.last_activity_at),
        },
        "achievements": {aid: _ts(at) for aid, at in sorted(state.achievements.items())},
        "items": [item_to_dict(item) for item in sorted(state.items.values(), key=lambda i: i.id)],
    }


def _achievements_from_dict(data: dict[str, Any]) -> dict[str, datetime]:
    unlocked = {}
    for aid, at in data.items():
        ts = _parse_ts(at)
        if ts is None:
            raise ValueError(f"Achievement {aid!r} has no unlock time")
        unlocked[str(aid)] = ts
    return unlocked


def state_from_dict(data: dict[str, Any]) -> LearnerState:
    streak = data.get("streak") or {}
    items = [item_from_dict(d) for d in data.get("items") or []]
    return LearnerState(
        learner_id=str(data.get("learner_id", "default")),
        items={item.id: item for item in items},
        xp=int(data.get("xp", 0)),
        streak=StreakState(
            current_streak=int(streak.get("current_streak", 0)),
            longest_streak=int(streak.get("longest_streak", 0)),
            last_activity_at=_parse_ts(streak.get("last_activity_at")),
        ),
        total_reviews=int(data.get("total_reviews", 0)),
        correct_reviews=int(data.get("correct_reviews", 0)),
        achievements=_achievements_from_dict(data.get("achievements") or {}),
    )


class YamlLearnerStateRepository(LearnerStateRepository):
    """
    Stores a learner's state in a single YAML file.

    Writes go to a temporary file in the same directory and are renamed over
    the target, so a crash never leaves a half-written state file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> LearnerState:
        text = self.path.read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise StateFileError(f"Invalid YAML in {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StateFileError(f"{self.path} does not contain a learner state mapping")

        version = data.get("version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise StateFileError(f"Unsupported state file version {version} in {self.path}")

        try:
            state = state_from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StateFileError(f"Malformed learner state in {self.path}: {e}") from e

        logger.debug(f"Loaded {len(state.items)} items from {self.path}")
        return state

    def save(self, state: LearnerState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = yaml.safe_dump(state_to_dict(state), sort_keys=False, allow_unicode=True)

        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved {len(state.items)} items to {self.path}")
