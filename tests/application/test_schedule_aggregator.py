from datetime import date, datetime, timedelta, timezone

import pytest

from ritmo.application.schedule_aggregator import ReviewScheduleAggregator
from ritmo.domain.review.models import Item, ReviewPerformance

UTC = timezone.utc
AS_OF = datetime(2024, 3, 10, 15, 0, tzinfo=UTC)


def _item(item_id: str, due: datetime) -> Item:
    return Item(id=item_id, next_review_at=due)


@pytest.fixture
def aggregator():
    return ReviewScheduleAggregator()


@pytest.fixture
def items():
    return [
        _item("overdue", datetime(2024, 3, 8, 10, 0, tzinfo=UTC)),
        _item("now", AS_OF),
        _item("tonight", datetime(2024, 3, 10, 23, 59, tzinfo=UTC)),
        _item("tomorrow", datetime(2024, 3, 11, 0, 0, tzinfo=UTC)),
        _item("day7", datetime(2024, 3, 17, 23, 59, tzinfo=UTC)),
        _item("day8", datetime(2024, 3, 18, 0, 0, tzinfo=UTC)),
        _item("day14", datetime(2024, 3, 24, 23, 0, tzinfo=UTC)),
        _item("day15", datetime(2024, 3, 25, 0, 0, tzinfo=UTC)),
    ]


def test_buckets(aggregator, items):
    schedule = aggregator.schedule(items, AS_OF)
    assert schedule.due_today == 3
    assert schedule.due_this_week == 2
    assert schedule.due_next_week == 2


def test_buckets_are_disjoint_and_bounded(aggregator, items):
    schedule = aggregator.schedule(items, AS_OF)
    assert schedule.total <= len(items)
    # day15 is beyond both weeks
    assert schedule.total == len(items) - 1


def test_every_item_lands_in_at_most_one_bucket(aggregator):
    # One item per hour over three weeks: each must be counted at most once.
    items = [_item(f"i{h}", AS_OF - timedelta(days=2) + timedelta(hours=h)) for h in range(24 * 21)]
    schedule = aggregator.schedule(items, AS_OF)
    assert schedule.total <= len(items)
    for item in items:
        single = aggregator.schedule([item], AS_OF)
        assert single.total in (0, 1)


def test_empty_item_set(aggregator):
    schedule = aggregator.schedule([], AS_OF)
    assert (schedule.due_today, schedule.due_this_week, schedule.due_next_week) == (0, 0, 0)


def test_calendar_folds_overdue_into_today(aggregator, items):
    calendar = aggregator.calendar(items, AS_OF, days=3)
    assert [d.day for d in calendar] == [date(2024, 3, 10), date(2024, 3, 11), date(2024, 3, 12)]
    assert [d.count for d in calendar] == [3, 1, 0]


def test_calendar_default_window(aggregator, items):
    calendar = aggregator.calendar(items, AS_OF)
    assert len(calendar) == 14
    assert sum(d.count for d in calendar) == 6


def test_performance_efficiency():
    perf = ReviewScheduleAggregator().performance(total_reviews=8, correct_reviews=6, streak_days=2)
    assert perf.efficiency == 75.0
    assert perf.streak_days == 2


def test_performance_efficiency_with_no_reviews():
    assert ReviewPerformance().efficiency == 0.0
