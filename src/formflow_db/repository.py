"""Async CRUD repository for FormSession.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Methods ``flush()`` but never ``commit()``.

The repository holds no navigation logic; it only copies state in and
out of the row.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from formflow_db.models.enums import SessionStatus
from formflow_db.models.session import FormSession


class SessionRepository:
    """Async read/write operations on the ``form_sessions`` table."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_session(
        self,
        db: AsyncSession,
        *,
        form_id: str,
        session_id: str,
    ) -> FormSession:
        """Insert a new session row and return it.

        Raises:
            ValueError: if the (form_id, session_id) pair already exists.
        """
        session = FormSession(
            form_id=form_id,
            session_id=session_id,
            history=[0],
            loop_iterations={},
            answers={},
        )
        db.add(session)
        try:
            await db.flush()  # Populate server-side defaults (id, timestamps)
        except IntegrityError as exc:
            raise ValueError(
                f"Session already exists: form_id={form_id}, session_id={session_id}"
            ) from exc
        return session

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_form_and_session(
        self, db: AsyncSession, form_id: str, session_id: str
    ) -> FormSession | None:
        """Fetch a session by the unique (form_id, session_id) pair."""
        stmt = select(FormSession).where(
            FormSession.form_id == form_id,
            FormSession.session_id == session_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_form(
        self,
        db: AsyncSession,
        form_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[FormSession]:
        """List sessions for a form, most recent first."""
        stmt = (
            select(FormSession)
            .where(FormSession.form_id == form_id)
            .order_by(FormSession.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def save_navigation(
        self,
        db: AsyncSession,
        session: FormSession,
        *,
        state: dict[str, Any],
        answers: dict[str, Any],
    ) -> FormSession:
        """Persist a serialized NavigationState and the answers dict.

        Also transitions status from ``created`` to ``in_progress`` once the
        respondent has moved off the first step.
        """
        session.current_index = state["current_index"]
        # Fresh containers so SQLAlchemy detects the JSONB mutation
        session.history = list(state["history"])
        session.phase = state["phase"]
        session.loop_iterations = dict(state["loop_iterations"])
        session.answers = dict(answers)
        if session.status == SessionStatus.CREATED and len(session.history) > 1:
            session.status = SessionStatus.IN_PROGRESS
        session.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return session

    async def complete_session(
        self,
        db: AsyncSession,
        session: FormSession,
        result: dict[str, Any],
    ) -> FormSession:
        """Mark a session as completed with the submission payload.

        The CHECK constraint ``ck_completed_has_result`` enforces that
        ``result`` is non-null whenever status is completed.
        """
        now = datetime.now(timezone.utc)
        session.status = SessionStatus.COMPLETED
        session.result = result
        session.completed_at = now
        session.updated_at = now
        await db.flush()
        return session
