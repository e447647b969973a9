"""Step and option models — the nodes of a form's navigation graph.

Each step kind maps to a specific renderer component and answer slot:

  Choice kinds (answer: selected option):
    - image_selection: visual option cards, one picked
    - multiple_choice: text options, one or many picked

  Input kinds:
    - text_input: free text
    - file_upload: a single uploaded file reference
    - dimensions: width/height (and depth for 3-D) numeric fields
    - opinion_scale: rating between scale_min and scale_max
    - contact_fields: name/email/phone group

  Structural kinds:
    - frames_plan: repeatable group, one entry per frame
    - loop_section: "add another / continue" prompt that can jump back

The discriminated ``Step`` union uses ``question_type`` as its discriminator.
The ``step_mapper`` dict maps kind strings to their Pydantic classes.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from formflow.constants import (
    DEFAULT_DIMENSION_UNITS,
    DEFAULT_FRAMES_MAX_COUNT,
    DEFAULT_SCALE_MAX,
)


# --- Base step type ---

class BaseStep(BaseModel):
    """Fields shared by all step kinds."""

    id: str
    title: str
    description: Optional[str] = None
    # 1-based display order, dense and unique within a form
    step_order: int
    is_required: bool = False


# --- Options ---

class Option(BaseModel):
    """A selectable choice owned by exactly one step.

    ``jump_to_step`` is the legacy per-option shortcut (target by
    ``step_order``).  It is only consulted when the owning step has no
    StepLogic entry at all.
    """

    id: str
    step_id: str
    label: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    jump_to_step: Optional[int] = None


# --- Choice kinds ---

class ImageSelectionStep(BaseStep):
    """Visual option cards; the respondent picks one."""

    question_type: Literal["image_selection"] = "image_selection"


class MultipleChoiceStep(BaseStep):
    """Text options; one pick unless ``allow_multiple`` is set."""

    question_type: Literal["multiple_choice"] = "multiple_choice"
    allow_multiple: bool = False


# --- Input kinds ---

class TextInputStep(BaseStep):
    """Free text answer."""

    question_type: Literal["text_input"] = "text_input"
    placeholder: Optional[str] = None


class FileUploadStep(BaseStep):
    """Single file upload.  The upload itself happens outside the engine."""

    question_type: Literal["file_upload"] = "file_upload"
    allowed_file_types: List[str] = []
    max_file_size_mb: Optional[float] = None


class DimensionsStep(BaseStep):
    """Width/height numeric fields, plus depth when ``dimension_type`` is 3d."""

    question_type: Literal["dimensions"] = "dimensions"
    dimension_type: Literal["2d", "3d"] = "2d"
    dimension_units: str = DEFAULT_DIMENSION_UNITS


class OpinionScaleStep(BaseStep):
    """Rating scale between ``scale_min`` and ``scale_max`` inclusive."""

    question_type: Literal["opinion_scale"] = "opinion_scale"
    scale_type: Literal["number", "star"] = "number"
    scale_min: int = 1
    scale_max: Optional[int] = None

    @model_validator(mode="after")
    def _chk(self):
        # Default the upper bound by scale type if not explicitly provided
        if self.scale_max is None:
            self.scale_max = DEFAULT_SCALE_MAX[self.scale_type]
        if self.scale_min >= self.scale_max:
            raise ValueError("scale_min must be < scale_max")
        return self


class ContactFieldsStep(BaseStep):
    """Contact-info group (name, email, phone)."""

    question_type: Literal["contact_fields"] = "contact_fields"


# --- Structural kinds ---

class FramesPlanStep(BaseStep):
    """Repeatable group: the respondent fills one entry per frame.

    The ``frames_require_*`` flags choose which fields of every frame are
    mandatory.  They are checked independently of ``is_required``.
    """

    question_type: Literal["frames_plan"] = "frames_plan"
    frames_max_count: int = DEFAULT_FRAMES_MAX_COUNT
    frames_require_image: bool = False
    frames_require_location: bool = False
    frames_require_measurements: bool = False


class LoopSectionStep(BaseStep):
    """Prompt offering "add another" or "continue".

    Choosing ``add_another`` jumps back to ``loop_start_step_id`` until
    ``loop_max_iterations`` repetitions have been made (unbounded if unset).
    """

    question_type: Literal["loop_section"] = "loop_section"
    loop_start_step_id: Optional[str] = None
    loop_max_iterations: Optional[int] = None
    loop_label: Optional[str] = None
    loop_button_text: Optional[str] = None


# --- Discriminated union of all step kinds ---

Step = Annotated[
    Union[
        ImageSelectionStep,
        MultipleChoiceStep,
        TextInputStep,
        FileUploadStep,
        DimensionsStep,
        OpinionScaleStep,
        ContactFieldsStep,
        FramesPlanStep,
        LoopSectionStep,
    ],
    Field(discriminator="question_type"),
]

# Maps question_type string → Pydantic class for dynamic deserialization.
step_mapper = {
    "image_selection": ImageSelectionStep,
    "multiple_choice": MultipleChoiceStep,
    "text_input": TextInputStep,
    "file_upload": FileUploadStep,
    "dimensions": DimensionsStep,
    "opinion_scale": OpinionScaleStep,
    "contact_fields": ContactFieldsStep,
    "frames_plan": FramesPlanStep,
    "loop_section": LoopSectionStep,
}
