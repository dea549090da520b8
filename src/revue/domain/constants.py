"""Centralized constants for the Revue scheduler.

All magic numbers and defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Quality grades ----------
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3  # lowest grade that counts as a successful recall

# ---------- Quality estimation ----------
FAST_ANSWER_MS = 2000  # correct answers faster than this grade 5
SLOW_ANSWER_MS = 5000  # correct answers faster than this grade 4, else 3

# ---------- Easiness ----------
DEFAULT_EASINESS = 2.5
MIN_EASINESS = 1.3

# ---------- Intervals (days) ----------
FAILED_INTERVAL = 1
# Fixed intervals indexed by prior repetition count; later reviews multiply.
LEARNING_INTERVALS = (1, 3, 7)

# ---------- Due selection ----------
DEFAULT_DUE_LIMIT = 100
