"""Centralized constants for the Ritmo engine.

All tuning numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ease factor ----------
INITIAL_EASE = 2.5
EASE_FLOOR = 1.3
EASE_CEILING = 10.0
EASE_PRECISION = 4  # decimal places kept after each update

# Bonus applied on a correct answer, keyed by the new consecutive-correct count.
# (minimum streak, bonus) pairs, ascending. The last step is the cap.
EASE_BONUS_STEPS = ((1, 0.10), (3, 0.12), (5, 0.15))
EASE_PENALTY = 0.20

# ---------- Item levels ----------
MAX_ITEM_LEVEL = 5
# Review interval in days for each item level (0..5).
LEVEL_INTERVAL_DAYS = (1, 1, 1, 3, 7, 14)
MASTERED_EASE = 3.5  # ease at which level 5 begins

# ---------- Answers ----------
NEUTRAL_CONFIDENCE = 0.5
INCORRECT_RECALL_SCORE = 0.1
EVENT_ID_HISTORY = 32

# ---------- Streaks ----------
DEFAULT_RISK_HOUR = 18
STREAK_DAY_XP = 10
STREAK_MILESTONE_XP_PER_DAY = 20
STREAK_MILESTONES = (3, 7, 30)

# ---------- XP ----------
MASTERY_XP = 10
DEFAULT_XP_BASE = {
    "flashcard": 5,
    "quiz_question": 10,
    "review": 5,
    "lesson": 20,
}
DEFAULT_DIFFICULTY_MULTIPLIERS = {
    "beginner": 1.0,
    "intermediate": 1.5,
    "advanced": 2.0,
}
PARTIAL_CREDIT_FACTOR = 0.25

# ---------- Level table ----------
LEVEL_COUNT = 30
LEVEL_BASE_XP = 100
LEVEL_GROWTH = 1.5

# ---------- Schedule views ----------
WEEK_DAYS = 7
CALENDAR_DAYS = 14
UPCOMING_WINDOW_DAYS = 3
MINUTES_PER_CARD = 0.5
