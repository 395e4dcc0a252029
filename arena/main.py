"""Puzzle Arena - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from arena.core.config import get_settings
from arena.core.errors import ArenaError
from arena.db.base import Base
from arena.db.session import AsyncSessionLocal, engine
from arena.realtime.hub import BroadcastHub
from arena.routers import competitions
from arena.services.attempts import AttemptService
from arena.services.checker import AnswerChecker
from arena.services.rate_limit import RateLimitConfig
from arena.services.submissions import SubmissionService

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    hub = BroadcastHub(send_timeout=settings.broadcast_send_timeout_seconds)
    hub.start()

    attempt_service = AttemptService(AsyncSessionLocal, hub, lock_timeout=settings.lock_timeout_seconds)
    app.state.hub = hub
    app.state.attempt_service = attempt_service
    app.state.submission_service = SubmissionService(
        attempt_service,
        AnswerChecker(timeout=settings.checker_timeout_seconds),
        RateLimitConfig.from_settings(settings),
    )
    logger.info("%s started", settings.app_name)

    yield

    await hub.stop()
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Competition puzzle attempts with live spectator updates",
    lifespan=lifespan,
)


@app.exception_handler(ArenaError)
async def arena_error_handler(request: Request, exc: ArenaError):
    if exc.status_code >= 500:
        logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(competitions.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
