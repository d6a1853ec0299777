"""Centralized constants for cadence.

All SM-2 numbers and planning defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ratings ----------
MIN_RATING = 0
MAX_RATING = 5
PASSING_RATING = 3

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
INITIAL_INTERVAL = 1  # days
FIRST_SUCCESS_INTERVAL = 1  # days
SECOND_SUCCESS_INTERVAL = 6  # days

# ---------- Study Planner ----------
MAX_CARDS_PER_SESSION = 20
MINUTES_PER_CARD = 1.5
MAX_SESSIONS_PER_DAY = 3

# ---------- Overview ----------
DUE_WINDOW_DAYS = 7
