"""Puzzle opening and answer submission, as driven by the HTTP layer.

Order for an answer: visibility gate, load the try, cooldown gate, remote
check, then the locked state mutation. Anything that fails before the last
step leaves the try untouched.
"""
import logging
from datetime import datetime
from typing import Callable, NamedTuple

from starlette.concurrency import run_in_threadpool

from arena.core.clock import utcnow
from arena.core.errors import AlreadyFinishedError, NotFoundError, PuzzleLockedError, RateLimitedError
from arena.models.attempt import Attempt
from arena.models.competition import Competition
from arena.services.attempts import AttemptService, check_step
from arena.services.checker import AnswerChecker
from arena.services.rate_limit import RateLimitConfig, check_rate_limit

logger = logging.getLogger(__name__)


class AnswerOutcome(NamedTuple):
    is_correct: bool
    attempt: Attempt


def _catalog_address(competition: Competition) -> str:
    if competition.catalog is None:
        raise NotFoundError("Catalog not found")
    return competition.catalog.address


class SubmissionService:
    def __init__(
        self,
        attempts: AttemptService,
        checker: AnswerChecker,
        rate_limit: RateLimitConfig,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.attempts = attempts
        self.checker = checker
        self.rate_limit = rate_limit
        self.clock = clock

    async def _ensure_visible(self, competition_id: str, puzzle_index: int, user_id: str) -> None:
        if not await self.attempts.user_has_permission_to_view_puzzle(competition_id, puzzle_index, user_id):
            raise PuzzleLockedError()

    async def open_puzzle(
        self,
        competition_id: str,
        puzzle_id: str,
        puzzle_index: int,
        puzzle_lvl: str,
        user_id: str,
    ) -> dict:
        """Make sure the first try exists, then return the user's puzzle input."""
        await self._ensure_visible(competition_id, puzzle_index, user_id)
        competition = await self.attempts.get_competition(competition_id)
        await self.attempts.trigger_first_attempt(competition_id, puzzle_id, puzzle_index, puzzle_lvl, user_id)
        return await run_in_threadpool(
            self.checker.fetch_puzzle_input,
            _catalog_address(competition),
            competition.catalog_theme,
            puzzle_id,
            user_id,
        )

    async def answer_puzzle(
        self,
        competition_id: str,
        puzzle_id: str,
        puzzle_index: int,
        step: int,
        user_id: str,
        answer: str,
    ) -> AnswerOutcome:
        check_step(step)
        await self._ensure_visible(competition_id, puzzle_index, user_id)
        competition = await self.attempts.get_competition(competition_id)
        attempt = await self.attempts.get_attempt(competition_id, puzzle_id, puzzle_index, step, user_id)
        if attempt.is_finished:
            raise AlreadyFinishedError()

        decision = check_rate_limit(attempt, self.rate_limit, now=self.clock())
        if decision.is_blocked:
            logger.info(
                "Rate limited user %s on puzzle %s[%d] step %d for %s",
                user_id, puzzle_id, puzzle_index, step, decision.remaining,
            )
            raise RateLimitedError(decision.remaining)

        is_correct = await run_in_threadpool(
            self.checker.check,
            _catalog_address(competition),
            competition.catalog_theme,
            puzzle_id,
            step,
            user_id,
            answer,
        )

        attempt = await self.attempts.record_submission(
            competition_id, puzzle_id, puzzle_index, step, user_id, answer, is_correct
        )
        return AnswerOutcome(is_correct, attempt)
