"""Error taxonomy for the attempt lifecycle.

Services raise these; ``arena.main`` maps them to HTTP responses through a
single exception handler, so every subclass carries its own status code.
"""
from datetime import timedelta


class ArenaError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    detail = "Internal error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail

    def to_dict(self) -> dict:
        return {"error": self.detail}


class NotFoundError(ArenaError):
    status_code = 404
    detail = "Not found"


class AlreadyFinishedError(ArenaError):
    status_code = 409
    detail = "Try already finished"


class RateLimitedError(ArenaError):
    status_code = 429
    detail = "Rate limit exceeded"

    def __init__(self, remaining: timedelta):
        super().__init__()
        self.remaining = remaining

    @property
    def wait_time_seconds(self) -> int:
        return int(self.remaining.total_seconds())

    def to_dict(self) -> dict:
        return {"error": self.detail, "wait_time_seconds": self.wait_time_seconds}


class PuzzleLockedError(ArenaError):
    status_code = 403
    detail = "Previous puzzle must be solved first"


class InvalidStepError(ArenaError):
    status_code = 400
    detail = "Invalid step"


class UpstreamCheckError(ArenaError):
    """The catalog service failed or answered with something unusable.

    Raised before any attempt is mutated, so the whole submission can be retried.
    """

    status_code = 502
    detail = "Failed to check solution"


class ConcurrencyConflictError(ArenaError):
    status_code = 409
    detail = "Concurrent update, please retry"


class InfrastructureError(ArenaError):
    status_code = 503
    detail = "Storage unavailable"
