"""Cooldown gate: blocks new submissions after too many attempts in a short time."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import NamedTuple

from arena.core.clock import ensure_utc, utcnow
from arena.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    """Two escalating tiers: reaching ``threshold`` attempts imposes ``cooldown``."""

    attempts_threshold_1: int = 3
    cooldown_1: timedelta = timedelta(minutes=3)
    attempts_threshold_2: int = 5
    cooldown_2: timedelta = timedelta(minutes=5)

    def __post_init__(self):
        if not 0 < self.attempts_threshold_1 < self.attempts_threshold_2:
            raise ValueError("rate limit thresholds must satisfy 0 < threshold_1 < threshold_2")
        if self.cooldown_1 < timedelta(0) or self.cooldown_2 < timedelta(0):
            raise ValueError("rate limit cooldowns must not be negative")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimitConfig":
        return cls(
            attempts_threshold_1=settings.rate_limit_attempts_threshold_1,
            cooldown_1=timedelta(seconds=settings.rate_limit_cooldown_1_seconds),
            attempts_threshold_2=settings.rate_limit_attempts_threshold_2,
            cooldown_2=timedelta(seconds=settings.rate_limit_cooldown_2_seconds),
        )


DEFAULT_RATE_LIMIT_CONFIG = RateLimitConfig()


class RateLimitDecision(NamedTuple):
    is_blocked: bool
    remaining: timedelta


NOT_BLOCKED = RateLimitDecision(False, timedelta(0))


def check_rate_limit(attempt, config: RateLimitConfig, now: datetime | None = None) -> RateLimitDecision:
    """Return whether a new submission on ``attempt`` is blocked, and for how long.

    ``attempt`` only needs ``attempts`` and ``last_move_time``. The first
    submission (no previous move) is never blocked.
    """
    last_move = ensure_utc(attempt.last_move_time)
    if last_move is None:
        return NOT_BLOCKED

    now = ensure_utc(now) if now is not None else utcnow()

    # Highest tier first
    if attempt.attempts >= config.attempts_threshold_2:
        tier, cooldown_end = "threshold2", last_move + config.cooldown_2
    elif attempt.attempts >= config.attempts_threshold_1:
        tier, cooldown_end = "threshold1", last_move + config.cooldown_1
    else:
        return NOT_BLOCKED

    if now < cooldown_end:
        logger.debug("Cooldown %s active for %d attempts", tier, attempt.attempts)
        return RateLimitDecision(True, cooldown_end - now)
    return NOT_BLOCKED
