"""Shared fixtures: a throwaway SQLite database, seeded references, fake clock/checker/hub."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from arena.db.base import Base
from arena.models import Catalog, Competition, Group, User
from arena.realtime.hub import BroadcastHub
from arena.services.attempts import AttemptService
from arena.services.rate_limit import RateLimitConfig
from arena.services.submissions import SubmissionService

T0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingHub(BroadcastHub):
    """Hub that also remembers everything published to it."""

    def __init__(self):
        super().__init__()
        self.events = []

    def publish(self, event):
        self.events.append(event)
        super().publish(event)


class FakeChecker:
    """Stands in for the catalog service; answers "42" are correct unless told otherwise."""

    def __init__(self, correct_answer: str = "42"):
        self.correct_answer = correct_answer
        self.calls = []
        self.error = None

    def check(self, catalog_address, theme, puzzle_id, step, seed_id, answer):
        self.calls.append((catalog_address, theme, puzzle_id, step, seed_id, answer))
        if self.error is not None:
            raise self.error
        return answer == self.correct_answer

    def fetch_puzzle_input(self, catalog_address, theme, puzzle_id, seed_id):
        return {"puzzle": puzzle_id, "theme": theme, "seed": seed_id, "input": [1, 2, 3]}


@dataclass
class Seed:
    competition_id: str
    other_competition_id: str
    user_id: str
    other_user_id: str
    group_name: str


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'arena-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def seed(session_factory) -> Seed:
    async with session_factory() as db:
        async with db.begin():
            group = Group(id="g-1", name="Team Rocket")
            user = User(id="u-1", firstname="Ada", lastname="Lovelace", email="ada@example.com", groups=[group])
            other = User(id="u-2", firstname="Alan", lastname="Turing", email="alan@example.com")
            catalog = Catalog(id="cat-1", name="Main", address="http://catalog.test/", description="")
            db.add_all([
                group,
                user,
                other,
                catalog,
                Competition(id="c-1", title="Autumn Cup", catalog_id="cat-1", catalog_theme="aoc"),
                Competition(id="c-2", title="Winter Cup", catalog_id="cat-1", catalog_theme="aoc"),
            ])
    return Seed("c-1", "c-2", "u-1", "u-2", "Team Rocket")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def hub() -> RecordingHub:
    return RecordingHub()


@pytest.fixture
def attempt_service(session_factory, hub, clock) -> AttemptService:
    return AttemptService(session_factory, hub, lock_timeout=2.0, clock=clock)


@pytest.fixture
def checker() -> FakeChecker:
    return FakeChecker()


@pytest.fixture
def submission_service(attempt_service, checker, clock) -> SubmissionService:
    return SubmissionService(attempt_service, checker, RateLimitConfig(), clock=clock)
