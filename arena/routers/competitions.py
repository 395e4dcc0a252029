"""Competition puzzle routes: open a puzzle, answer it, list tries, live updates over WebSocket."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from fastapi.requests import HTTPConnection

from arena.core.config import get_settings
from arena.core.errors import NotFoundError
from arena.core.security import verify_session_token
from arena.realtime.hub import BroadcastHub
from arena.schemas.attempt import AttemptSchema, AttemptWithUserSchema
from arena.schemas.competition import (
    AnswerRequestSchema,
    AnswerResultSchema,
    InputRequestSchema,
    PermissionSchema,
)
from arena.services.attempts import AttemptService
from arena.services.submissions import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/competitions", tags=["competitions"])
settings = get_settings()


# ---------- dependencies ----------

def get_hub(conn: HTTPConnection) -> BroadcastHub:
    return conn.app.state.hub


def get_attempt_service(conn: HTTPConnection) -> AttemptService:
    return conn.app.state.attempt_service


def get_submission_service(conn: HTTPConnection) -> SubmissionService:
    return conn.app.state.submission_service


def get_current_user_id(conn: HTTPConnection) -> str:
    """User id from the session cookie or a bearer token; 401 otherwise."""
    token = conn.cookies.get(settings.session_cookie_name)
    if not token:
        scheme, _, credentials = conn.headers.get("authorization", "").partition(" ")
        if scheme.lower() == "bearer":
            token = credentials.strip()
    user_id = verify_session_token(token)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user_id


UserId = Annotated[str, Depends(get_current_user_id)]
Attempts = Annotated[AttemptService, Depends(get_attempt_service)]
Submissions = Annotated[SubmissionService, Depends(get_submission_service)]


# ---------- puzzle play ----------

@router.post("/input")
async def get_puzzle_input(body: InputRequestSchema, user_id: UserId, submissions: Submissions):
    """Open a puzzle: create the first try if needed and return the puzzle input."""
    return await submissions.open_puzzle(
        body.competition_id,
        body.puzzle_id,
        body.puzzle_index,
        body.puzzle_difficulty,
        user_id,
    )


@router.post("/answer_puzzle", response_model=AnswerResultSchema)
async def answer_puzzle(body: AnswerRequestSchema, user_id: UserId, submissions: Submissions):
    """Submit an answer for one step of a puzzle."""
    outcome = await submissions.answer_puzzle(
        body.competition_id,
        body.puzzle_id,
        body.puzzle_index,
        body.puzzle_step,
        user_id,
        body.answer,
    )
    return AnswerResultSchema(
        is_correct=outcome.is_correct,
        puzzle_id=body.puzzle_id,
        puzzle_step=body.puzzle_step,
    )


# ---------- queries ----------

@router.get("/{competition_id}/tries", response_model=list[AttemptWithUserSchema])
async def get_competition_tries(competition_id: str, user_id: UserId, attempts: Attempts):
    await attempts.get_competition(competition_id)
    tries = await attempts.list_competition_attempts(competition_id)
    return [AttemptWithUserSchema.model_validate(t) for t in tries]


@router.get("/{competition_id}/users/{target_user_id}/tries", response_model=list[AttemptWithUserSchema])
async def get_user_tries(competition_id: str, target_user_id: str, user_id: UserId, attempts: Attempts):
    """One user's tries in a competition, by puzzle and step. Users may only read their own."""
    if target_user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No permission to view these tries")
    await attempts.get_competition(competition_id)
    tries = await attempts.list_user_attempts(competition_id, target_user_id)
    return [AttemptWithUserSchema.model_validate(t) for t in tries]


@router.get("/{competition_id}/puzzles/{puzzle_id}/{puzzle_index}/tries", response_model=list[AttemptSchema])
async def get_puzzle_tries(
    competition_id: str,
    puzzle_id: str,
    puzzle_index: int,
    user_id: UserId,
    attempts: Attempts,
):
    """The current user's tries on one puzzle, oldest first."""
    tries = await attempts.list_puzzle_attempts(competition_id, puzzle_id, puzzle_index, user_id)
    return [AttemptSchema.model_validate(t) for t in tries]


@router.get("/{competition_id}/permission/puzzles/{puzzle_index}", response_model=PermissionSchema)
async def get_puzzle_permission(competition_id: str, puzzle_index: int, user_id: UserId, attempts: Attempts):
    if puzzle_index < 0:
        raise HTTPException(status_code=400, detail="Invalid puzzle index")
    await attempts.get_competition(competition_id)
    has_permission = await attempts.user_has_permission_to_view_puzzle(competition_id, puzzle_index, user_id)
    return PermissionSchema(has_permission=has_permission)


# ---------- live ----------

@router.websocket("/{competition_id}/ws")
async def competition_ws(
    websocket: WebSocket,
    competition_id: str,
    attempts: Attempts,
    hub: Annotated[BroadcastHub, Depends(get_hub)],
):
    """Stream TryUpdate events of one competition until the client disconnects."""
    try:
        await attempts.get_competition(competition_id)
    except NotFoundError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await hub.register(competition_id, websocket)
    try:
        # Spectators only listen; reading detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Spectator left competition %s", competition_id)
    finally:
        await hub.unregister(competition_id, websocket)
