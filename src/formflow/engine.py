"""FormEngine — DB-backed orchestrator for respondent sessions.

Stateless engine pattern: each call loads the session row, rebuilds a
:class:`NavigationController` from the persisted navigation state, runs one
operation, persists the new state, and returns the next step.  No
in-memory state is kept between calls.

The engine accepts an ``AsyncSession`` from the caller so that the caller
(typically a FastAPI endpoint) controls transaction boundaries.

Any async work around an answer (file upload, webhook, email) happens
before :meth:`submit_answer` is called or after it returns; the navigation
step itself never awaits anything but the repository.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from formflow_db.models.enums import SessionStatus
from formflow_db.models.session import FormSession
from formflow_db.repository import SessionRepository

from formflow.graph import StepGraph
from formflow.interfaces import ResponseSink, SubmissionHandler
from formflow.models.answer import Answer
from formflow.models.session import (
    CompletionStep,
    FormSubmission,
    NavigationState,
    OptionPayload,
    SessionInfo,
    StepResult,
    StepView,
    TransitionEvent,
    ValidationFailedStep,
)
from formflow.models.step import BaseStep, Step
from formflow.navigator import NavigationController
from formflow.store import FormStore

logger = logging.getLogger(__name__)

# Fields every step kind carries; everything else is kind-specific config.
_BASE_STEP_FIELDS = set(BaseStep.model_fields) | {"question_type"}


class _PendingSubmission(SubmissionHandler):
    """Captures the controller's submission so the engine can persist it async."""

    def __init__(self) -> None:
        self.submission: FormSubmission | None = None

    def submit(self, submission: FormSubmission) -> None:
        self.submission = submission


class FormEngine:
    """Drives respondent sessions for every form in a :class:`FormStore`.

    Args:
        store: a loaded :class:`FormStore` instance
        sink: optional async delivery of completed submissions
    """

    def __init__(self, store: FormStore, *, sink: ResponseSink | None = None) -> None:
        self._store = store
        self._repo = SessionRepository()
        self._sink = sink

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def create_session(
        self,
        db: AsyncSession,
        *,
        form_id: str,
        session_id: str,
    ) -> SessionInfo:
        """Create a new respondent session positioned on the first step.

        Raises:
            KeyError: if the form is unknown.
            ValueError: if the session id is already taken for this form.
        """
        graph = self._store.get_graph(form_id)
        if len(graph) == 0:
            raise ValueError(f"Form {form_id} has no steps")
        row = await self._repo.create_session(db, form_id=form_id, session_id=session_id)
        return self._to_session_info(row)

    async def get_session(
        self, db: AsyncSession, *, form_id: str, session_id: str
    ) -> SessionInfo | None:
        """Fetch session info.  Returns None if not found."""
        row = await self._repo.get_by_form_and_session(db, form_id, session_id)
        if row is None:
            return None
        return self._to_session_info(row)

    async def list_sessions(
        self,
        db: AsyncSession,
        *,
        form_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> list[SessionInfo]:
        """List sessions for a form, most recent first."""
        rows = await self._repo.list_by_form(db, form_id, limit=limit, offset=offset)
        return [self._to_session_info(r) for r in rows]

    # ==================================================================
    # Step API
    # ==================================================================

    async def get_current_step(
        self, db: AsyncSession, *, form_id: str, session_id: str
    ) -> StepResult:
        """Return the step to show, or the completion result.

        Does not modify session state.
        """
        row = await self._load_session(db, form_id, session_id)
        if row.status == SessionStatus.COMPLETED:
            return self._build_completion_step(row)
        graph = self._store.get_graph(form_id)
        return self._build_step_view(graph, self._controller(row, graph))

    async def submit_answer(
        self,
        db: AsyncSession,
        *,
        form_id: str,
        session_id: str,
        value: Answer | dict[str, Any],
    ) -> StepResult:
        """Answer the current step and advance.

        A rejected answer returns a ``validation_failed`` step and leaves
        the session untouched.  Advancing past the last step persists the
        submission, hands it to the sink, and returns a ``completed`` step.

        Raises:
            ValueError: if the session is missing or already completed.
        """
        row = await self._load_session(db, form_id, session_id)
        self._require_open(row, "submit")
        graph = self._store.get_graph(form_id)

        answer = value if isinstance(value, Answer) else Answer.model_validate(value)
        pending = _PendingSubmission()
        controller = self._controller(row, graph, submission=pending)

        result = controller.advance(answer)
        if not result.accepted:
            step = controller.current_step
            return ValidationFailedStep(
                index=result.from_index,
                step_id=step.id,
                reasons=result.reasons,
            )

        await self._save(db, row, controller)

        if pending.submission is not None:
            return await self._complete(db, row, pending.submission)

        return self._build_step_view(graph, controller, transition=result.transition)

    async def step_back(
        self, db: AsyncSession, *, form_id: str, session_id: str
    ) -> StepResult:
        """Go back to the previously visited step.

        Raises:
            ValueError: if the session is missing or already completed.
        """
        row = await self._load_session(db, form_id, session_id)
        self._require_open(row, "step back")
        graph = self._store.get_graph(form_id)

        controller = self._controller(row, graph)
        result = controller.retreat()
        await self._save(db, row, controller)
        return self._build_step_view(graph, controller, transition=result.transition)

    # ==================================================================
    # Internal: controller round-trip
    # ==================================================================

    def _controller(
        self,
        row: FormSession,
        graph: StepGraph,
        *,
        submission: SubmissionHandler | None = None,
    ) -> NavigationController:
        """Rebuild a controller from the persisted row."""
        state = NavigationState(
            current_index=row.current_index,
            history=list(row.history or [0]),
            phase=row.phase,
            loop_iterations=dict(row.loop_iterations or {}),
        )
        answers = {
            step_id: Answer.model_validate(raw)
            for step_id, raw in (row.answers or {}).items()
        }
        return NavigationController(
            graph, state=state, answers=answers, submission=submission,
        )

    async def _save(
        self, db: AsyncSession, row: FormSession, controller: NavigationController
    ) -> None:
        await self._repo.save_navigation(
            db,
            row,
            state=controller.state.model_dump(mode="json"),
            answers={
                step_id: answer.model_dump(mode="json", exclude_defaults=True)
                for step_id, answer in controller.answers.items()
            },
        )

    async def _complete(
        self, db: AsyncSession, row: FormSession, submission: FormSubmission
    ) -> CompletionStep:
        """Persist the submission, then hand it to the sink.

        A sink failure is logged; the session stays completed regardless.
        """
        await self._repo.complete_session(db, row, submission.model_dump(mode="json"))
        if self._sink is not None:
            try:
                await self._sink.deliver(submission)
            except Exception:
                logger.exception(
                    "Response sink failed for form %s session %s",
                    row.form_id, row.session_id,
                )
        return CompletionStep(submission=submission)

    # ==================================================================
    # Internal: step payloads
    # ==================================================================

    def _build_step_view(
        self,
        graph: StepGraph,
        controller: NavigationController,
        *,
        transition: TransitionEvent | None = None,
    ) -> StepView:
        step = controller.current_step
        if step is None:
            raise ValueError(
                f"Session index {controller.current_index} is outside form {graph.form_id}"
            )

        options = graph.options_of(step.id)
        config = self._step_config(step)

        return StepView(
            index=controller.current_index,
            step_id=step.id,
            step_order=step.step_order,
            title=step.title,
            description=step.description,
            question_type=step.question_type,
            is_required=step.is_required,
            options=[
                OptionPayload(
                    id=o.id, label=o.label, description=o.description, image_url=o.image_url,
                )
                for o in options
            ] or None,
            config=config or None,
            previous_answer=controller.answers.get(step.id),
            can_go_back=controller.can_go_back,
            total_steps=len(graph),
            transition=transition,
        )

    @staticmethod
    def _step_config(step: Step) -> dict:
        """Kind-specific configuration (scale bounds, frame requirements, ...)."""
        return step.model_dump(mode="json", exclude=_BASE_STEP_FIELDS)

    @staticmethod
    def _build_completion_step(row: FormSession) -> CompletionStep:
        """Rebuild the completion payload from an already-completed row."""
        return CompletionStep(submission=FormSubmission.model_validate(row.result))

    # ==================================================================
    # Internal: helpers
    # ==================================================================

    async def _load_session(
        self, db: AsyncSession, form_id: str, session_id: str
    ) -> FormSession:
        """Load a session row or raise ValueError if not found."""
        row = await self._repo.get_by_form_and_session(db, form_id, session_id)
        if row is None:
            raise ValueError(f"Session not found: form_id={form_id}, session_id={session_id}")
        return row

    @staticmethod
    def _require_open(row: FormSession, operation: str) -> None:
        if row.status == SessionStatus.COMPLETED:
            raise ValueError(
                f"Cannot {operation}: session status is 'completed', "
                f"expected 'created' or 'in_progress'"
            )

    @staticmethod
    def _to_session_info(row: FormSession) -> SessionInfo:
        """Convert an ORM row to a public SessionInfo."""
        return SessionInfo(
            form_id=row.form_id,
            session_id=row.session_id,
            status=row.status.value if isinstance(row.status, SessionStatus) else str(row.status),
            current_index=row.current_index,
            phase=row.phase,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
