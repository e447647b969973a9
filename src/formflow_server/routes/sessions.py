"""Session management endpoints — create, get, list respondent sessions.

Session identity is the (form_id, session_id) pair, enforced by a unique
constraint in the database.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from formflow.engine import FormEngine
from formflow.models.session import SessionInfo

from formflow_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from formflow_server.dependencies import get_db, get_form_engine

router = APIRouter(tags=["sessions"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class CreateSessionRequest(BaseModel):
    """Body for POST /forms/{form_id}/sessions."""
    session_id: str


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/forms/{form_id}/sessions", status_code=201)
async def create_session(
    form_id: str,
    body: CreateSessionRequest,
    db: AsyncSession = Depends(get_db),
    engine: FormEngine = Depends(get_form_engine),
) -> SessionInfo:
    """Open a respondent session on the form's first step.

    Returns 201 on success, 404 for an unknown form, and 409 if the
    session id is already taken for this form.
    """
    return await engine.create_session(db, form_id=form_id, session_id=body.session_id)


@router.get("/forms/{form_id}/sessions/{session_id}")
async def get_session(
    form_id: str,
    session_id: str,
    db: AsyncSession = Depends(get_db),
    engine: FormEngine = Depends(get_form_engine),
) -> SessionInfo:
    """Get session info.  Raises 404 if the session does not exist."""
    info = await engine.get_session(db, form_id=form_id, session_id=session_id)
    if info is None:
        raise ValueError(f"Session not found: form_id={form_id}, session_id={session_id}")
    return info


@router.get("/forms/{form_id}/sessions")
async def list_sessions(
    form_id: str,
    db: AsyncSession = Depends(get_db),
    engine: FormEngine = Depends(get_form_engine),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[SessionInfo]:
    """List sessions for a form, most recent first."""
    return await engine.list_sessions(db, form_id=form_id, limit=limit, offset=offset)
