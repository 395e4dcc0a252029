from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from arena.core.config import Settings
from arena.services.rate_limit import DEFAULT_RATE_LIMIT_CONFIG, RateLimitConfig, check_rate_limit

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def make_try(attempts, minutes_ago=None):
    last_move = None if minutes_ago is None else NOW - timedelta(minutes=minutes_ago)
    return SimpleNamespace(attempts=attempts, last_move_time=last_move)


def test_first_submission_is_never_blocked():
    decision = check_rate_limit(make_try(10), DEFAULT_RATE_LIMIT_CONFIG, now=NOW)
    assert decision.is_blocked is False
    assert decision.remaining == timedelta(0)


def test_below_first_threshold_is_not_blocked():
    assert not check_rate_limit(make_try(2, minutes_ago=0), DEFAULT_RATE_LIMIT_CONFIG, now=NOW).is_blocked


def test_first_tier_blocks_with_remaining_time():
    decision = check_rate_limit(make_try(3, minutes_ago=2), DEFAULT_RATE_LIMIT_CONFIG, now=NOW)
    assert decision.is_blocked is True
    assert decision.remaining == timedelta(minutes=1)


def test_first_tier_expires():
    decision = check_rate_limit(make_try(3, minutes_ago=4), DEFAULT_RATE_LIMIT_CONFIG, now=NOW)
    assert decision.is_blocked is False


def test_cooldown_end_is_exclusive():
    assert not check_rate_limit(make_try(3, minutes_ago=3), DEFAULT_RATE_LIMIT_CONFIG, now=NOW).is_blocked


def test_second_tier_uses_longer_cooldown():
    decision = check_rate_limit(make_try(5, minutes_ago=4), DEFAULT_RATE_LIMIT_CONFIG, now=NOW)
    assert decision.is_blocked is True
    assert decision.remaining == timedelta(minutes=1)
    assert not check_rate_limit(make_try(7, minutes_ago=6), DEFAULT_RATE_LIMIT_CONFIG, now=NOW).is_blocked


def test_naive_last_move_time_is_read_as_utc():
    attempt = SimpleNamespace(attempts=3, last_move_time=(NOW - timedelta(minutes=1)).replace(tzinfo=None))
    decision = check_rate_limit(attempt, DEFAULT_RATE_LIMIT_CONFIG, now=NOW)
    assert decision.is_blocked is True
    assert decision.remaining == timedelta(minutes=2)


def test_custom_config():
    config = RateLimitConfig(
        attempts_threshold_1=1,
        cooldown_1=timedelta(seconds=30),
        attempts_threshold_2=2,
        cooldown_2=timedelta(hours=1),
    )
    assert check_rate_limit(make_try(1, minutes_ago=0), config, now=NOW).remaining == timedelta(seconds=30)
    assert check_rate_limit(make_try(2, minutes_ago=30), config, now=NOW).remaining == timedelta(minutes=30)


@pytest.mark.parametrize("first, second", [(5, 5), (5, 3), (0, 2)])
def test_invalid_thresholds_are_rejected(first, second):
    with pytest.raises(ValueError):
        RateLimitConfig(attempts_threshold_1=first, attempts_threshold_2=second)


def test_config_from_settings():
    settings = Settings(
        rate_limit_attempts_threshold_1=4,
        rate_limit_cooldown_1_seconds=60,
        rate_limit_attempts_threshold_2=8,
        rate_limit_cooldown_2_seconds=600,
    )
    config = RateLimitConfig.from_settings(settings)
    assert config == RateLimitConfig(4, timedelta(minutes=1), 8, timedelta(minutes=10))
