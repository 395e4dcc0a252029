"""Attempt lifecycle: create the first try, record submissions, cascade to step 2.

All mutations of one attempt key are serialized twice over: by an in-process
per-key lock (``KeyedLocks``) and, on PostgreSQL, by ``SELECT ... FOR UPDATE``
inside the transaction. The unique constraint on the key is the last line of
defence against a second process inserting the same row.

Broadcast events are only published after the transaction has committed.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from arena.core.clock import utcnow
from arena.core.errors import (
    AlreadyFinishedError,
    ConcurrencyConflictError,
    InfrastructureError,
    InvalidStepError,
    NotFoundError,
)
from arena.core.locks import KeyedLocks
from arena.models.attempt import FIRST_STEP, LAST_STEP, Attempt
from arena.models.competition import Competition
from arena.models.user import User, new_id
from arena.realtime.hub import BroadcastHub
from arena.schemas.attempt import (
    AttemptSchema,
    AttemptWithUserSchema,
    TryUpdateSchema,
    UpdateType,
    UserSnapshotSchema,
)
from arena.services.scoring import calculate_score

logger = logging.getLogger(__name__)

# PostgreSQL lock_not_available; SQLite reports busy locks by message only
LOCK_TIMEOUT_SQLSTATES = {"55P03"}

# (competition_id, user_id, puzzle_id, puzzle_index, step)
AttemptKey = tuple[str, str, str, int, int]


def attempt_key(competition_id: str, user_id: str, puzzle_id: str, puzzle_index: int, step: int) -> AttemptKey:
    return (competition_id, user_id, puzzle_id, puzzle_index, step)


def check_step(step: int) -> None:
    if step not in (FIRST_STEP, LAST_STEP):
        raise InvalidStepError(f"Invalid step {step}, expected {FIRST_STEP} or {LAST_STEP}")


def _is_lock_timeout(error: OperationalError) -> bool:
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate in LOCK_TIMEOUT_SQLSTATES or "database is locked" in str(orig)


def _where_key(key: AttemptKey):
    competition_id, user_id, puzzle_id, puzzle_index, step = key
    return (
        Attempt.competition_id == competition_id,
        Attempt.user_id == user_id,
        Attempt.puzzle_id == puzzle_id,
        Attempt.puzzle_index == puzzle_index,
        Attempt.step == step,
    )


class AttemptService:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        hub: BroadcastHub,
        locks: KeyedLocks | None = None,
        lock_timeout: float | None = 10.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.hub = hub
        self.locks = locks if locks is not None else KeyedLocks()
        self.lock_timeout = lock_timeout
        self.clock = clock

    # ---------- helpers ----------

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Open a session and translate storage failures.

        Constraint violations pass through, lock waits that time out in the
        database become ConcurrencyConflictError, the rest InfrastructureError.
        """
        try:
            async with self.session_factory() as db:
                yield db
        except IntegrityError:
            raise
        except OperationalError as e:
            if _is_lock_timeout(e):
                logger.warning("Database lock wait timed out: %s", e)
                raise ConcurrencyConflictError("Timed out waiting for a concurrent update") from e
            logger.error("Database error: %s", e)
            raise InfrastructureError() from e
        except SQLAlchemyError as e:
            logger.error("Database error: %s", e)
            raise InfrastructureError() from e

    async def _find(self, db: AsyncSession, key: AttemptKey, for_update: bool = False) -> Attempt | None:
        stmt = select(Attempt).where(*_where_key(key))
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    def _new_attempt(self, key: AttemptKey, puzzle_lvl: str, now: datetime) -> Attempt:
        competition_id, user_id, puzzle_id, puzzle_index, step = key
        return Attempt(
            id=new_id(),
            competition_id=competition_id,
            user_id=user_id,
            puzzle_id=puzzle_id,
            puzzle_index=puzzle_index,
            puzzle_lvl=puzzle_lvl,
            step=step,
            start_time=now,
            end_time=None,
            attempts=0,
            last_answer=None,
            last_move_time=None,
            score=0,
        )

    async def get_user_snapshot(self, user_id: str) -> UserSnapshotSchema:
        """Load the user with groups, frozen into a value object for broadcasts."""
        async with self._session() as db:
            result = await db.execute(
                select(User).options(selectinload(User.groups)).where(User.id == user_id)
            )
            user = result.scalar_one_or_none()
            if user is None:
                raise NotFoundError("User not found")
            return UserSnapshotSchema.model_validate(user)

    async def get_competition(self, competition_id: str) -> Competition:
        async with self._session() as db:
            result = await db.execute(
                select(Competition)
                .options(selectinload(Competition.catalog))
                .where(Competition.id == competition_id)
            )
            competition = result.scalar_one_or_none()
        if competition is None:
            raise NotFoundError("Competition not found")
        return competition

    def _broadcast(self, attempt: Attempt, user: UserSnapshotSchema, update_type: UpdateType) -> None:
        snapshot = AttemptWithUserSchema(**AttemptSchema.model_validate(attempt).model_dump(), user=user)
        self.hub.publish(
            TryUpdateSchema(competition_id=attempt.competition_id, attempt=snapshot, update_type=update_type)
        )

    # ---------- lifecycle ----------

    async def trigger_first_attempt(
        self,
        competition_id: str,
        puzzle_id: str,
        puzzle_index: int,
        puzzle_lvl: str,
        user_id: str,
    ) -> Attempt:
        """Return the step-1 attempt for this puzzle, creating it if needed.

        Idempotent: concurrent callers for the same key all get the same row,
        and only the caller that actually created it broadcasts a "new" event.
        """
        await self.get_competition(competition_id)
        user = await self.get_user_snapshot(user_id)
        key = attempt_key(competition_id, user_id, puzzle_id, puzzle_index, FIRST_STEP)

        try:
            async with self.locks.hold(key, timeout=self.lock_timeout):
                attempt, created = await self._get_or_create(key, puzzle_lvl)
        except ConcurrencyConflictError:
            # Someone else holds the key; the row they hold is the one we want
            logger.info("Lock busy for try %s, falling back to a plain read", key)
            attempt, created = await self._refetch(key), False

        if created:
            logger.info(
                "Created first try for puzzle %s[%d] by user %s in competition %s",
                puzzle_id, puzzle_index, user_id, competition_id,
            )
            self._broadcast(attempt, user, "new")
        return attempt

    async def _get_or_create(self, key: AttemptKey, puzzle_lvl: str) -> tuple[Attempt, bool]:
        try:
            async with self._session() as db:
                async with db.begin():
                    existing = await self._find(db, key, for_update=True)
                    if existing is not None:
                        return existing, False
                    attempt = self._new_attempt(key, puzzle_lvl, self.clock())
                    db.add(attempt)
            return attempt, True
        except IntegrityError:
            # Another process inserted the same key between our check and our commit
            logger.warning("Unique conflict creating try %s, reading the winner's row", key)
        return await self._refetch(key), False

    async def _refetch(self, key: AttemptKey) -> Attempt:
        """Read an existing try without locking it; conflict if it is not there."""
        async with self._session() as db:
            existing = await self._find(db, key)
        if existing is None:
            raise ConcurrencyConflictError()
        return existing

    async def record_submission(
        self,
        competition_id: str,
        puzzle_id: str,
        puzzle_index: int,
        step: int,
        user_id: str,
        answer: str,
        is_correct: bool,
    ) -> Attempt:
        """Apply one checked submission to an existing, unfinished attempt.

        Every submission counts as one attempt. A correct one also finishes the
        attempt (end time and score) and, for step 1, opens step 2 in the same
        transaction.
        """
        check_step(step)
        user = await self.get_user_snapshot(user_id)
        key = attempt_key(competition_id, user_id, puzzle_id, puzzle_index, step)
        next_attempt = None

        async with self.locks.hold(key, timeout=self.lock_timeout):
            async with self._session() as db:
                async with db.begin():
                    attempt = await self._find(db, key, for_update=True)
                    if attempt is None:
                        raise NotFoundError("Try not found")
                    if attempt.is_finished:
                        raise AlreadyFinishedError()

                    now = self.clock()
                    attempt.last_answer = answer
                    attempt.last_move_time = now
                    attempt.attempts += 1

                    if is_correct:
                        attempt.end_time = now
                        attempt.score = calculate_score(
                            attempt.puzzle_lvl,
                            attempt.puzzle_index,
                            attempt.step,
                            attempt.start_time,
                            now,
                            attempt.attempts,
                        )
                        if step == FIRST_STEP:
                            next_key = attempt_key(competition_id, user_id, puzzle_id, puzzle_index, LAST_STEP)
                            if await self._find(db, next_key, for_update=True) is None:
                                next_attempt = self._new_attempt(next_key, attempt.puzzle_lvl, now)
                                db.add(next_attempt)

        if is_correct:
            logger.info(
                "Correct answer for puzzle %s[%d] step %d by user %s (score %.2f)",
                puzzle_id, puzzle_index, step, user_id, attempt.score,
            )
        else:
            logger.info(
                "Incorrect answer for puzzle %s[%d] step %d by user %s (attempt %d)",
                puzzle_id, puzzle_index, step, user_id, attempt.attempts,
            )

        self._broadcast(attempt, user, "update")
        if next_attempt is not None:
            self._broadcast(next_attempt, user, "new")
        return attempt

    # ---------- queries ----------

    async def get_attempt(
        self,
        competition_id: str,
        puzzle_id: str,
        puzzle_index: int,
        step: int,
        user_id: str,
    ) -> Attempt:
        check_step(step)
        async with self._session() as db:
            attempt = await self._find(db, attempt_key(competition_id, user_id, puzzle_id, puzzle_index, step))
        if attempt is None:
            raise NotFoundError("Try not found")
        return attempt

    async def list_puzzle_attempts(
        self,
        competition_id: str,
        puzzle_id: str,
        puzzle_index: int,
        user_id: str,
    ) -> list[Attempt]:
        async with self._session() as db:
            result = await db.execute(
                select(Attempt)
                .where(
                    Attempt.competition_id == competition_id,
                    Attempt.user_id == user_id,
                    Attempt.puzzle_id == puzzle_id,
                    Attempt.puzzle_index == puzzle_index,
                )
                .order_by(Attempt.start_time.asc(), Attempt.step.asc())
            )
            return list(result.scalars().all())

    async def list_competition_attempts(self, competition_id: str) -> list[Attempt]:
        """Every try of a competition, users and groups loaded (spectator hydration)."""
        async with self._session() as db:
            result = await db.execute(
                select(Attempt)
                .options(selectinload(Attempt.user).selectinload(User.groups))
                .where(Attempt.competition_id == competition_id)
                .order_by(Attempt.start_time.asc(), Attempt.puzzle_index.asc(), Attempt.step.asc())
            )
            return list(result.scalars().all())

    async def list_user_attempts(self, competition_id: str, user_id: str) -> list[Attempt]:
        async with self._session() as db:
            result = await db.execute(
                select(Attempt)
                .options(selectinload(Attempt.user).selectinload(User.groups))
                .where(Attempt.competition_id == competition_id, Attempt.user_id == user_id)
                .order_by(Attempt.puzzle_index.asc(), Attempt.step.asc(), Attempt.start_time.asc())
            )
            return list(result.scalars().all())

    async def user_has_permission_to_view_puzzle(
        self,
        competition_id: str,
        puzzle_index: int,
        user_id: str,
    ) -> bool:
        """Puzzle 0 is always open; puzzle N needs a finished try on puzzle N-1."""
        if puzzle_index == 0:
            return True
        async with self._session() as db:
            result = await db.execute(
                select(
                    exists().where(
                        Attempt.competition_id == competition_id,
                        Attempt.user_id == user_id,
                        Attempt.puzzle_index == puzzle_index - 1,
                        Attempt.end_time.is_not(None),
                    )
                )
            )
            return bool(result.scalar())
