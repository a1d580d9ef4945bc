"""Session endpoints -- create a project design, take turns, reopen slots."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.api.v1.schemas.common import ErrorResponse
from src.api.v1.schemas.session import (
    CreateSessionRequest,
    SessionResponse,
    TurnRequest,
    TurnResponse,
)
from src.core.orchestrator import ConversationOrchestrator
from src.core.session.models import ConversationSession
from src.core.session.store import SessionStore
from src.dependencies import get_orchestrator, get_session_store
from src.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/sessions")

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Unknown project id"}}


@router.post(
    "",
    response_model=SessionResponse,
    status_code=201,
    responses={409: {"model": ErrorResponse, "description": "Project id already in use"}},
    summary="Start a project design",
)
async def create_session(
    request: CreateSessionRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    fields = {"project": request.project}
    if request.project_id:
        fields["project_id"] = request.project_id
    session = await orchestrator.start_session(ConversationSession(**fields))
    return SessionResponse.from_session(session)


@router.get(
    "/{project_id}",
    response_model=SessionResponse,
    responses=_NOT_FOUND,
    summary="Fetch the current session state",
)
async def get_session(
    project_id: str,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    return SessionResponse.from_session(await store.get(project_id))


@router.post(
    "/{project_id}/turns",
    response_model=TurnResponse,
    responses=_NOT_FOUND,
    summary="Submit one educator turn",
    description=(
        "Send typed text, a clicked affordance, or both.  The reply carries the "
        "validated envelope to render, the buttons to offer next and the "
        "updated session."
    ),
)
async def submit_turn(
    project_id: str,
    request: TurnRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> TurnResponse:
    outcome = await orchestrator.submit_turn(project_id, request.text, request.affordance)
    logger.debug(
        "turn_submitted",
        project_id=project_id,
        affordance=request.affordance,
        fallback=outcome.used_fallback,
    )
    return TurnResponse.from_outcome(outcome)


@router.post(
    "/{project_id}/slots/{slot}/reopen",
    response_model=SessionResponse,
    responses={
        **_NOT_FOUND,
        422: {"model": ErrorResponse, "description": "Unknown slot or nothing to reopen"},
    },
    summary="Reopen a confirmed slot for revision",
)
async def reopen_slot(
    project_id: str,
    slot: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    return SessionResponse.from_session(await orchestrator.reopen_slot(project_id, slot))


@router.delete(
    "/{project_id}",
    status_code=204,
    responses=_NOT_FOUND,
    summary="Discard a session",
)
async def delete_session(
    project_id: str,
    store: SessionStore = Depends(get_session_store),
) -> None:
    await store.delete(project_id)
