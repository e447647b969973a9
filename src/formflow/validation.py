"""AnswerValidator — the required-field gate checked before every advance.

Gating is kind-specific rather than a generic "answer present" check:

  - **frames_plan**: every frame is checked against the fields the step
    marks as required (image / location / measurements).  One reason is
    collected per missing field per frame; all frames are checked before
    rejecting.
  - **dimensions**: width and height are required when the step is
    required; depth additionally when ``dimension_type`` is 3d.
  - **loop_section**: a required loop prompt needs a ``loop_choice``.
  - **everything else**: a required step needs at least one answer slot
    filled (option pick, free text, uploaded file, contact name/email,
    multi-select picks, scale rating).

Validation never raises; failures come back as a list of human-readable
reasons so the UI can message specifically.
"""

from __future__ import annotations

from formflow.models.answer import Answer
from formflow.models.session import ValidationResult
from formflow.models.step import (
    DimensionsStep,
    FramesPlanStep,
    LoopSectionStep,
    Step,
)


def _present(value: str | None) -> bool:
    """A text slot counts only if it holds something other than whitespace."""
    return value is not None and value.strip() != ""


class AnswerValidator:
    """Checks an answer against its step's required-field rules."""

    def check(self, step: Step, answer: Answer | None) -> ValidationResult:
        """Return the list of missing-field reasons (empty when OK)."""
        answer = answer or Answer()

        if isinstance(step, FramesPlanStep):
            reasons = self._check_frames(step, answer)
        elif isinstance(step, DimensionsStep):
            reasons = self._check_dimensions(step, answer)
        elif isinstance(step, LoopSectionStep):
            reasons = self._check_loop(step, answer)
        else:
            reasons = self._check_generic(step, answer)

        return ValidationResult(reasons=reasons)

    # ------------------------------------------------------------------
    # Kind-specific checks
    # ------------------------------------------------------------------

    @staticmethod
    def _check_frames(step: FramesPlanStep, answer: Answer) -> list[str]:
        reasons: list[str] = []

        if step.is_required and not answer.frames:
            return ["Please add at least one frame"]

        if len(answer.frames) > step.frames_max_count:
            reasons.append(
                f"No more than {step.frames_max_count} frames can be added"
            )

        for number, frame in enumerate(answer.frames, start=1):
            if step.frames_require_image and not _present(frame.image_url):
                reasons.append(f"Frame {number}: image is required")
            if step.frames_require_location and not _present(frame.location):
                reasons.append(f"Frame {number}: location is required")
            if step.frames_require_measurements and not _present(frame.measurements):
                reasons.append(f"Frame {number}: measurements are required")

        return reasons

    @staticmethod
    def _check_dimensions(step: DimensionsStep, answer: Answer) -> list[str]:
        if not step.is_required:
            return []

        reasons: list[str] = []
        if answer.width is None:
            reasons.append("Width is required")
        if answer.height is None:
            reasons.append("Height is required")
        if step.dimension_type == "3d" and answer.depth is None:
            reasons.append("Depth is required")
        return reasons

    @staticmethod
    def _check_loop(step: LoopSectionStep, answer: Answer) -> list[str]:
        if step.is_required and answer.loop_choice is None:
            return ["Please choose whether to add another or continue"]
        return []

    @staticmethod
    def _check_generic(step: Step, answer: Answer) -> list[str]:
        if not step.is_required:
            return []

        # Several kinds share one answer object, so any filled slot counts
        filled = (
            _present(answer.selected_option_id)
            or bool(answer.selected_option_ids)
            or _present(answer.answer_text)
            or _present(answer.file_url)
            or _present(answer.contact_name)
            or _present(answer.contact_email)
            or answer.scale_rating is not None
        )
        if filled:
            return []
        return ["This field is required"]
