"""Public model re-exports for formflow.

Consumers should import from ``formflow.models`` rather than reaching into
sub-modules directly.
"""

# --- Steps ---
from formflow.models.step import (
    BaseStep,
    ContactFieldsStep,
    DimensionsStep,
    FileUploadStep,
    FramesPlanStep,
    ImageSelectionStep,
    LoopSectionStep,
    MultipleChoiceStep,
    OpinionScaleStep,
    Option,
    Step,
    TextInputStep,
    step_mapper,
)

# --- Logic ---
from formflow.models.logic import (
    DefaultLogicAction,
    DimensionCondition,
    LogicAction,
    LogicCondition,
    LogicRule,
    OptionCondition,
    ScaleCondition,
    StepLogic,
    TextCondition,
    UnrecognizedCondition,
)

# --- Answers ---
from formflow.models.answer import Answer, FrameAnswer

# --- Session / step ---
from formflow.models.session import (
    AdvanceResult,
    CompletionStep,
    FormSubmission,
    NavigationPhase,
    NavigationState,
    OptionPayload,
    SessionInfo,
    StepResult,
    StepView,
    TransitionEvent,
    ValidationFailedStep,
    ValidationResult,
)

__all__ = [
    # Steps
    "BaseStep",
    "ContactFieldsStep",
    "DimensionsStep",
    "FileUploadStep",
    "FramesPlanStep",
    "ImageSelectionStep",
    "LoopSectionStep",
    "MultipleChoiceStep",
    "OpinionScaleStep",
    "Option",
    "Step",
    "TextInputStep",
    "step_mapper",
    # Logic
    "DefaultLogicAction",
    "DimensionCondition",
    "LogicAction",
    "LogicCondition",
    "LogicRule",
    "OptionCondition",
    "ScaleCondition",
    "StepLogic",
    "TextCondition",
    "UnrecognizedCondition",
    # Answers
    "Answer",
    "FrameAnswer",
    # Session
    "AdvanceResult",
    "CompletionStep",
    "FormSubmission",
    "NavigationPhase",
    "NavigationState",
    "OptionPayload",
    "SessionInfo",
    "StepResult",
    "StepView",
    "TransitionEvent",
    "ValidationFailedStep",
    "ValidationResult",
]
