"""FormSession ORM model — single row per respondent session.

Each row tracks one respondent's walk through one form.  The navigation
state (current index, back-history, phase, loop counters) and all answers
live on the row as JSONB so the engine can rebuild its controller from a
single fetch.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Index,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from formflow_db.models.base import Base
from formflow_db.models.enums import SessionStatus


class FormSession(Base):
    """One row per respondent session.

    A form has many sessions; each is uniquely identified by the
    (form_id, session_id) pair.
    """

    __tablename__ = "form_sessions"

    # --- Primary key ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    form_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    # Caller-supplied session identifier, unique within a form
    session_id: Mapped[str] = mapped_column(Text, nullable=False)

    # --- Lifecycle ---
    status: Mapped[SessionStatus] = mapped_column(
        # Store as the lowercase string value, not the Python name
        String(20),
        nullable=False,
        default=SessionStatus.CREATED,
        index=True,
    )

    # --- Navigation state (mirrors formflow NavigationState) ---
    current_index: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    # Back-stack of visited step indices; first entry is the start index
    history: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        default=lambda: [0],
        server_default=text("'[0]'::jsonb"),
    )
    phase: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
        server_default=text("'active'"),
    )
    # {loop_step_id: times the respondent chose "add another"}
    loop_iterations: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )

    # --- Answers ---
    # Dict keyed by step id -> serialized Answer
    answers: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )

    # --- Final result ---
    # Written once when status transitions to "completed".
    # Shape: FormSubmission {form_id, answers, path}
    result: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # --- Table-level constraints ---
    __table_args__ = (
        UniqueConstraint("form_id", "session_id", name="uq_form_session"),
        CheckConstraint("current_index >= 0", name="ck_index_non_negative"),
        # Completed sessions must have a result payload
        CheckConstraint(
            "status != 'completed' OR result IS NOT NULL",
            name="ck_completed_has_result",
        ),
        Index("ix_answers_gin", "answers", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return (
            f"<FormSession(id={self.id!s}, form={self.form_id!r}, "
            f"session={self.session_id!r}, status={self.status!r}, "
            f"index={self.current_index})>"
        )
