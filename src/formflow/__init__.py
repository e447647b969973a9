"""formflow — conditional navigation engine for multi-step forms.

Public API:
    NavigationController — per-respondent state machine (advance / retreat / submit)
    StepGraph            — ordered steps, options and step logic with O(1) lookup
    FormStore            — loads YAML form definitions into step graphs
    FormEngine           — DB-backed async orchestrator over NavigationController
    ConditionEvaluator   — does one condition hold for an answer
    RuleEvaluator        — first-match rule evaluation with default fallback
    AnswerValidator      — required-field gate per step kind
    build_flowchart      — nodes/edges export of a form's routing

Collaborator interfaces:
    TransitionListener   — presentation hook for card-to-card transitions
    SubmissionHandler    — synchronous submission side effect
    ResponseSink         — async delivery of completed submissions

Step models:
    StepView             — step: present one step
    ValidationFailedStep — step: answer rejected, stay put
    CompletionStep       — step: form submitted
    StepResult           — union of the three
"""

from formflow.constants import END_OF_FORM
from formflow.engine import FormEngine
from formflow.evaluator import ConditionEvaluator, RuleEvaluator
from formflow.flowchart import build_flowchart
from formflow.graph import StepGraph
from formflow.interfaces import ResponseSink, SubmissionHandler, TransitionListener
from formflow.models.answer import Answer, FrameAnswer
from formflow.models.session import (
    AdvanceResult,
    CompletionStep,
    FormSubmission,
    NavigationPhase,
    NavigationState,
    SessionInfo,
    StepResult,
    StepView,
    TransitionEvent,
    ValidationFailedStep,
    ValidationResult,
)
from formflow.navigator import NavigationController
from formflow.store import FormStore
from formflow.validation import AnswerValidator

__all__ = [
    # Engine, controller & store
    "FormEngine",
    "NavigationController",
    "StepGraph",
    "FormStore",
    "END_OF_FORM",
    # Evaluation
    "ConditionEvaluator",
    "RuleEvaluator",
    "AnswerValidator",
    "build_flowchart",
    # Interfaces
    "TransitionListener",
    "SubmissionHandler",
    "ResponseSink",
    # Data
    "Answer",
    "FrameAnswer",
    "AdvanceResult",
    "FormSubmission",
    "NavigationPhase",
    "NavigationState",
    "TransitionEvent",
    "ValidationResult",
    # Session / step
    "SessionInfo",
    "StepResult",
    "StepView",
    "ValidationFailedStep",
    "CompletionStep",
]
