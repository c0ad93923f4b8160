# Domain Review Package
from .models import AnswerOutcome, Item, ReviewCalendarDay, ReviewPerformance, ReviewSchedule

__all__ = [
    "Item",
    "AnswerOutcome",
    "ReviewSchedule",
    "ReviewCalendarDay",
    "ReviewPerformance",
]
