from arena.services.attempts import AttemptService
from arena.services.checker import AnswerChecker
from arena.services.rate_limit import RateLimitConfig, check_rate_limit
from arena.services.scoring import calculate_score
from arena.services.submissions import SubmissionService

__all__ = [
    "AttemptService",
    "AnswerChecker",
    "RateLimitConfig",
    "check_rate_limit",
    "calculate_score",
    "SubmissionService",
]
