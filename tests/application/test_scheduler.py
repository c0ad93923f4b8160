from datetime import datetime, timedelta, timezone

import pytest

from ritmo.application.clock import ReviewClock
from ritmo.application.scheduler import ItemScheduler
from ritmo.domain.errors import InvalidTimestamp, ItemNotFound

D0 = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def scheduler(config):
    return ItemScheduler(clock=ReviewClock(lambda: D0), config=config)


def _answer_correct_times(scheduler, item_id, count, start=D0):
    outcome = None
    now = start
    for _ in range(count):
        outcome = scheduler.record_answer(item_id, True, now=now)
        now = outcome.item.next_review_at
    return outcome


def test_new_item_defaults(scheduler):
    item = scheduler.add_item("ciao")
    assert item.ease_factor == 2.5
    assert item.consecutive_correct == 0
    assert item.next_review_at == D0
    assert item.level == 3
    assert item.mastered is False


def test_add_item_is_idempotent(scheduler):
    first = scheduler.add_item("ciao")
    scheduler.record_answer("ciao", True)
    again = scheduler.add_item("ciao", now=D0 + timedelta(days=9))
    assert again is first
    assert again.consecutive_correct == 1


def test_scenario_a_one_correct_answer(scheduler):
    scheduler.add_item("ciao")
    outcome = scheduler.record_answer("ciao", True, now=D0)
    item = outcome.item
    assert item.consecutive_correct == 1
    assert item.ease_factor > 2.5
    assert item.next_review_at > D0
    assert outcome.applied is True


def test_scenario_b_then_one_incorrect_answer(scheduler):
    scheduler.add_item("ciao")
    after_a = scheduler.record_answer("ciao", True, now=D0).item.ease_factor
    item = scheduler.record_answer("ciao", False, now=D0 + timedelta(hours=1)).item
    assert item.consecutive_correct == 0
    assert item.ease_factor < after_a
    assert item.mastered is False


def test_unknown_item_raises(scheduler):
    with pytest.raises(ItemNotFound) as exc:
        scheduler.record_answer("nope", True)
    assert exc.value.item_id == "nope"

    with pytest.raises(ItemNotFound):
        scheduler.is_mastered("nope")


def test_answer_before_last_review_is_rejected(scheduler):
    scheduler.add_item("ciao")
    scheduler.record_answer("ciao", True, now=D0)
    with pytest.raises(InvalidTimestamp):
        scheduler.record_answer("ciao", True, now=D0 - timedelta(minutes=1))


def test_naive_now_is_rejected(scheduler):
    scheduler.add_item("ciao")
    with pytest.raises(InvalidTimestamp):
        scheduler.record_answer("ciao", True, now=datetime(2024, 3, 10))


def test_mastery_reached_and_reported_once(scheduler):
    scheduler.add_item("ciao")
    outcome = _answer_correct_times(scheduler, "ciao", 7)
    assert outcome.item.level == 4
    assert not scheduler.is_mastered("ciao")

    outcome = scheduler.record_answer("ciao", True, now=outcome.item.next_review_at)
    assert outcome.item.level == 5
    assert outcome.became_mastered is True
    assert scheduler.is_mastered("ciao")

    outcome = scheduler.record_answer("ciao", True, now=outcome.item.next_review_at)
    assert outcome.item.mastered is True
    assert outcome.became_mastered is False


def test_incorrect_answer_clears_mastery(scheduler):
    scheduler.add_item("ciao")
    last = _answer_correct_times(scheduler, "ciao", 8)
    assert last.item.mastered

    outcome = scheduler.record_answer("ciao", False, now=last.item.next_review_at)
    assert outcome.item.mastered is False
    assert outcome.item.level < 5


def test_confidence_drives_recall_score(scheduler):
    scheduler.add_item("a")
    scheduler.add_item("b")
    scheduler.add_item("c")
    assert scheduler.record_answer("a", True, 0.9).item.recall_score == 0.9
    assert scheduler.record_answer("b", True).item.recall_score == 0.5
    assert scheduler.record_answer("c", False, 0.9).item.recall_score == 0.1


def test_confidence_is_clamped(scheduler):
    scheduler.add_item("a")
    assert scheduler.record_answer("a", True, 7.0).item.recall_score == 1.0


def test_counters_track_answers(scheduler):
    scheduler.add_item("a")
    scheduler.record_answer("a", True)
    scheduler.record_answer("a", False)
    item = scheduler.get("a")
    assert item.review_count == 2
    assert item.correct_count == 1
    assert item.last_reviewed_at == D0


def test_repeated_event_id_is_ignored(scheduler):
    scheduler.add_item("a")
    first = scheduler.record_answer("a", True, event_id="evt-1")
    ease = first.item.ease_factor

    again = scheduler.record_answer("a", True, event_id="evt-1")
    assert again.applied is False
    assert again.item.ease_factor == ease
    assert again.item.review_count == 1

    third = scheduler.record_answer("a", True, event_id="evt-2")
    assert third.applied is True
    assert third.item.review_count == 2


def test_event_id_history_is_bounded(scheduler):
    scheduler.add_item("a")
    for n in range(40):
        scheduler.record_answer("a", True, event_id=f"evt-{n}")
    ids = scheduler.get("a").applied_event_ids
    assert len(ids) == 32
    assert ids[-1] == "evt-39"
    assert "evt-0" not in ids


def test_without_event_id_every_call_applies(scheduler):
    scheduler.add_item("a")
    scheduler.record_answer("a", True)
    scheduler.record_answer("a", True)
    assert scheduler.get("a").consecutive_correct == 2


def test_due_items_sorted_by_due_time_then_id(scheduler):
    for item_id in ["c", "a", "b"]:
        scheduler.add_item(item_id, now=D0)
    scheduler.add_item("early", now=D0 - timedelta(days=1))
    scheduler.add_item("later", now=D0 + timedelta(days=1))

    due = scheduler.due_items(D0)
    assert [i.id for i in due] == ["early", "a", "b", "c"]


def test_due_items_boundary_is_inclusive(scheduler):
    scheduler.add_item("a", now=D0)
    assert [i.id for i in scheduler.due_items(D0)] == ["a"]
    assert scheduler.due_items(D0 - timedelta(seconds=1)) == []


def test_answered_item_leaves_due_set(scheduler):
    scheduler.add_item("a")
    scheduler.record_answer("a", True)
    assert scheduler.due_items(D0) == []
    assert [i.id for i in scheduler.due_items(D0 + timedelta(days=3))] == ["a"]


def test_reset_clears_mastery(scheduler):
    scheduler.add_item("a")
    last = _answer_correct_times(scheduler, "a", 8)
    assert last.item.mastered

    later = last.item.next_review_at
    item = scheduler.reset_item("a", now=later)
    assert item.mastered is False
    assert item.ease_factor == 2.5
    assert item.consecutive_correct == 0
    assert item.next_review_at == later
    assert scheduler.get("a") is item
