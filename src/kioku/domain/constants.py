"""Centralized constants for kioku.

Interval tables, level bounds and other scheduling numbers live here so
every layer imports from a single source of truth.
"""

# ---------- Time units (milliseconds) ----------
MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

# ---------- Fine-grained policy (per-answer updater) ----------
# Indexed by level - 1.
FINE_INTERVALS_MS = (
    1 * MINUTE_MS,  # Level 1
    10 * MINUTE_MS,  # Level 2
    1 * HOUR_MS,  # Level 3
    6 * HOUR_MS,  # Level 4
    1 * DAY_MS,  # Level 5
    3 * DAY_MS,  # Level 6
    7 * DAY_MS,  # Level 7
    14 * DAY_MS,  # Level 8
    30 * DAY_MS,  # Level 9
    90 * DAY_MS,  # Level 10
)
FINE_MAX_LEVEL = len(FINE_INTERVALS_MS)

# ---------- Coarse policy (session-completion updater) ----------
# Indexed directly by level; slot 0 is a placeholder.
COARSE_INTERVAL_HOURS = (0, 4, 8, 24, 48, 96, 168, 336, 720)
COARSE_FALLBACK_HOURS = 4
COARSE_MAX_LEVEL = 8

MIN_LEVEL = 1

# ---------- Jitter ----------
JITTER_MIN = 0.9
JITTER_MAX = 1.1

# ---------- Answer quality (0-5 scale) ----------
QUALITY_CORRECT = 4
QUALITY_BLACKOUT = 0
QUALITY_PASSING = 3
PARTIAL_DEMOTION = 2

# ---------- Display ----------
LEVEL_NAMES = (
    "Novice",
    "Apprentice I",
    "Apprentice II",
    "Apprentice III",
    "Apprentice IV",
    "Guru I",
    "Guru II",
    "Master",
    "Enlightened",
    "Burned",
)

# ---------- Review queue ----------
DEFAULT_DUE_LIMIT = 50

# ---------- Session history ----------
DEFAULT_SESSION_LIMIT = 50
