"""
Review clock: the single source of "now" and UTC calendar-day arithmetic.

Day boundaries are UTC midnight. Streaks and due buckets both depend on this
choice, so every component goes through this module instead of the wall
clock.
"""

from collections.abc import Callable
from datetime import datetime, time, timedelta, timezone

from ritmo.domain.errors import InvalidTimestamp

ONE_DAY = timedelta(days=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReviewClock:
    """
    Injectable time source.

    Args:
        now_fn: Returns the current time as an aware datetime. Tests pass a
            fixed or stepping function.
    """

    def __init__(self, now_fn: Callable[[], datetime] | None = None):
        self._now_fn = now_fn or utc_now

    def now(self) -> datetime:
        return self.normalize(self._now_fn())

    def resolve(self, ts: datetime | None) -> datetime:
        """Normalize an explicit timestamp, or fall back to now()."""
        return self.now() if ts is None else self.normalize(ts)

    @staticmethod
    def normalize(ts: object) -> datetime:
        """
        Convert an aware datetime to UTC.

        Raises:
            InvalidTimestamp: If ts is not a datetime or carries no timezone.
        """
        if not isinstance(ts, datetime):
            raise InvalidTimestamp(f"Expected a datetime, got {type(ts).__name__}")
        if ts.tzinfo is None or ts.utcoffset() is None:
            raise InvalidTimestamp(f"Timestamp must be timezone-aware: {ts.isoformat()}")
        return ts.astimezone(timezone.utc)

    @classmethod
    def start_of_day(cls, ts: datetime) -> datetime:
        ts = cls.normalize(ts)
        return datetime.combine(ts.date(), time.min, tzinfo=timezone.utc)

    @classmethod
    def days_between(cls, a: datetime, b: datetime) -> int:
        """
        Number of UTC midnights crossed going from a to b.

        Negative when b is on an earlier calendar day than a.
        """
        return (cls.normalize(b).date() - cls.normalize(a).date()).days


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp at the system boundary.

    Naive values are read as UTC; a bare date means midnight UTC.
    """
    try:
        ts = datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise InvalidTimestamp(f"Malformed timestamp: {value!r}") from e
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ReviewClock.normalize(ts)
