"""Score computation for a completed attempt: base + time points + attempts malus, times index multiplier."""
from datetime import datetime

from arena.core.clock import ensure_utc

LEVEL_EASY = "EASY"
LEVEL_MEDIUM = "MEDIUM"
LEVEL_HARD = "HARD"

# Base score by level, then step (1 or 2)
BASE_SCORES = {
    LEVEL_EASY: {1: 15, 2: 35},
    LEVEL_MEDIUM: {1: 35, 2: 65},
    LEVEL_HARD: {1: 65, 2: 135},
}

# Time points by level: (elapsed minutes strictly below, points); past the last band -> fallback
TIME_BANDS = {
    LEVEL_EASY: [(10, 20), (30, 10)],
    LEVEL_MEDIUM: [(20, 20), (40, 10)],
    LEVEL_HARD: [(40, 75), (90, 40), (120, 20)],
}
TIME_FALLBACK = {
    LEVEL_EASY: -5,
    LEVEL_MEDIUM: -5,
    LEVEL_HARD: 0,
}

# Attempts malus: (more than N attempts, malus), highest first
ATTEMPT_MALUS_BANDS = [
    (10, -10),
    (5, -5),
    (3, -2),
]

# Every 100 puzzles adds one to the multiplier
INDEX_MULTIPLIER_STEP = 100


def base_score(puzzle_lvl: str, step: int) -> int:
    """Return the base score for a level/step; 0 for unknown levels or steps."""
    return BASE_SCORES.get(puzzle_lvl, {}).get(step, 0)


def elapsed_minutes(start_time: datetime, end_time: datetime) -> int:
    """Whole minutes between start and end (never negative)."""
    delta = ensure_utc(end_time) - ensure_utc(start_time)
    return max(0, int(delta.total_seconds() // 60))


def time_points(puzzle_lvl: str, minutes: int) -> int:
    """Bonus (or malus) for how fast the step was solved."""
    bands = TIME_BANDS.get(puzzle_lvl)
    if bands is None:
        return 0
    for limit, points in bands:
        if minutes < limit:
            return points
    return TIME_FALLBACK[puzzle_lvl]


def attempts_malus(attempts: int) -> int:
    for above, malus in ATTEMPT_MALUS_BANDS:
        if attempts > above:
            return malus
    return 0


def index_multiplier(puzzle_index: int) -> int:
    return 1 + puzzle_index // INDEX_MULTIPLIER_STEP


def calculate_score(
    puzzle_lvl: str,
    puzzle_index: int,
    step: int,
    start_time: datetime,
    end_time: datetime,
    attempts: int,
) -> float:
    total = (
        base_score(puzzle_lvl, step)
        + time_points(puzzle_lvl, elapsed_minutes(start_time, end_time))
        + attempts_malus(attempts)
    )
    return float(total * index_multiplier(puzzle_index))
