"""Navigation state and step models — the contract between the engine and callers.

``NavigationState`` is the serializable state owned by the navigation
controller.  The remaining models are what the controller and the engine
hand back after each operation:

  - AdvanceResult: outcome of one advance/retreat on the controller
  - StepView: present one step to the respondent
  - ValidationFailedStep: the answer was rejected, stay on the same step
  - CompletionStep: the form was submitted

The ``StepResult`` union covers the engine-level cases so callers can
dispatch on ``type``.
"""

import enum
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from formflow.models.answer import Answer


class NavigationPhase(str, enum.Enum):
    """Lifecycle of one respondent session.

    Transitions:
        active -> submitting  (advanced past the last step)
        submitting -> complete (submission side effect invoked)
    """

    ACTIVE = "active"
    SUBMITTING = "submitting"
    COMPLETE = "complete"


class NavigationState(BaseModel):
    """Serializable navigation state for one respondent session.

    ``history`` is the back-stack of visited indices.  Its first entry is
    the starting index and is never popped.
    """

    current_index: int = 0
    history: list[int] = Field(default_factory=lambda: [0])
    phase: NavigationPhase = NavigationPhase.ACTIVE
    # Times each loop_section step (by id) has sent the respondent back
    loop_iterations: dict[str, int] = Field(default_factory=dict)


class TransitionEvent(BaseModel):
    """Fire-and-forget notice for the renderer that a card transition happened."""

    direction: Literal["forward", "backward"]
    from_kind: str
    to_kind: str


class ValidationResult(BaseModel):
    """Outcome of the required-field gate.  Empty ``reasons`` means OK."""

    reasons: list[str] = []

    @property
    def ok(self) -> bool:
        return not self.reasons


class AdvanceResult(BaseModel):
    """What one controller operation did."""

    accepted: bool
    reasons: list[str] = []
    from_index: int
    to_index: int
    phase: NavigationPhase
    transition: TransitionEvent | None = None


class FormSubmission(BaseModel):
    """Payload handed to the submission side effect, exactly once per session."""

    form_id: str
    # Answers keyed by step id, restricted to steps on the visited path
    answers: dict[str, Answer]
    # Step ids in the order they were visited
    path: list[str]


class OptionPayload(BaseModel):
    """Flattened option for API consumers."""

    id: str
    label: str
    description: str | None = None
    image_url: str | None = None


class StepView(BaseModel):
    """Engine step: present one step to the respondent."""

    type: Literal["step"] = "step"
    index: int
    step_id: str
    step_order: int
    title: str
    description: str | None = None
    question_type: str
    is_required: bool
    options: list[OptionPayload] | None = None
    # Kind-specific configuration (scale bounds, frame requirements, ...)
    config: dict | None = None
    # Answer previously given to this step, for pre-filling after a retreat
    previous_answer: Answer | None = None
    can_go_back: bool
    total_steps: int
    transition: TransitionEvent | None = None


class ValidationFailedStep(BaseModel):
    """Engine step: the answer did not pass the required-field gate."""

    type: Literal["validation_failed"] = "validation_failed"
    index: int
    step_id: str
    reasons: list[str]


class CompletionStep(BaseModel):
    """Engine step: the form has been submitted."""

    type: Literal["completed"] = "completed"
    submission: FormSubmission


# Callers can match on step.type to dispatch rendering logic.
StepResult = StepView | ValidationFailedStep | CompletionStep


class SessionInfo(BaseModel):
    """Public view of a respondent session.

    Maps from the ORM ``FormSession`` model but exposes only what
    external callers need.
    """

    form_id: str
    session_id: str
    status: str
    current_index: int
    phase: str
    created_at: datetime
    updated_at: datetime
