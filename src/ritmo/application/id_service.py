"""Client-side ids for answer events."""

from ulid import ULID


def generate_event_id() -> str:
    """Generate a sortable answer-event id using ULID."""
    return f"evt_{ULID()}"
