"""Step endpoints — get the current step, answer it, or go back.

Every response is a ``StepResult`` discriminated by ``type``:
  - ``step``: present this step (with a transition hint for card steps)
  - ``validation_failed``: the answer was rejected, reasons attached
  - ``completed``: the form was submitted
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from formflow.engine import FormEngine
from formflow.models.answer import Answer
from formflow.models.session import StepResult

from formflow_server.dependencies import get_db, get_form_engine

router = APIRouter(tags=["steps"])

_SESSION_PATH = "/forms/{form_id}/sessions/{session_id}"


@router.get(f"{_SESSION_PATH}/step")
async def get_current_step(
    form_id: str,
    session_id: str,
    db: AsyncSession = Depends(get_db),
    engine: FormEngine = Depends(get_form_engine),
) -> StepResult:
    """Return the step the respondent is on, or the completion payload."""
    return await engine.get_current_step(db, form_id=form_id, session_id=session_id)


@router.post(f"{_SESSION_PATH}/step")
async def submit_answer(
    form_id: str,
    session_id: str,
    body: Answer,
    db: AsyncSession = Depends(get_db),
    engine: FormEngine = Depends(get_form_engine),
) -> StepResult:
    """Answer the current step and advance.

    Returns 409 once the session is completed.
    """
    return await engine.submit_answer(
        db, form_id=form_id, session_id=session_id, value=body,
    )


@router.post(f"{_SESSION_PATH}/back")
async def step_back(
    form_id: str,
    session_id: str,
    db: AsyncSession = Depends(get_db),
    engine: FormEngine = Depends(get_form_engine),
) -> StepResult:
    """Return to the previously visited step."""
    return await engine.step_back(db, form_id=form_id, session_id=session_id)
