"""Exceptions raised by the Ritmo engine.

All of them are local and recoverable by the host. Everything else the engine
receives is normalized rather than rejected.
"""


class RitmoError(Exception):
    """Base class for engine errors."""


class ItemNotFound(RitmoError, KeyError):
    """An item id is unknown to the scheduler (usually a sync bug on the host)."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(item_id)

    def __str__(self) -> str:
        return f"Unknown item: {self.item_id!r}"


class InvalidXpAmount(RitmoError, ValueError):
    """A negative or non-integer XP award."""

    def __init__(self, amount: object):
        self.amount = amount
        super().__init__(f"XP amount must be a non-negative integer, got {amount!r}")


class InvalidTimestamp(RitmoError, ValueError):
    """A malformed or non-monotonic timestamp."""
