"""Branching logic models — conditions, rules, actions, and per-step logic.

A step's ``StepLogic`` holds an ordered list of ``LogicRule`` entries and an
optional default ("else") action:

  - LogicRule: if ALL conditions hold, take the rule's action
  - DefaultLogicAction: taken when no rule matches

Conditions are a tagged union on ``field_type``.  Only ``option`` conditions
are evaluated; ``text``, ``scale`` and ``dimension`` carry comparator
operands that are stored but never interpreted.  A condition without a
``field_type`` that carries an ``option_id`` is read as an option condition.
Any other tag, or no tag at all, loads as an ``UnrecognizedCondition`` so a
malformed authored rule never fails to parse and simply never matches.
An option condition saved before its step had options has no
``option_id`` and never matches either.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Tag

# Comparator operators reserved by the authoring tool for non-option conditions.
ConditionOperator = Literal[
    "is", "is_not", "contains", "not_contains", "greater_than", "less_than",
]


# --- Conditions ---

class OptionCondition(BaseModel):
    """Holds when the respondent selected ``option_id``."""

    id: Optional[str] = None
    field_type: Literal["option"] = "option"
    # Unset when the rule was authored before the step had any options
    option_id: Optional[str] = None


class TextCondition(BaseModel):
    """Reserved: comparison against a free-text answer."""

    id: Optional[str] = None
    field_type: Literal["text"] = "text"
    condition_type: Optional[ConditionOperator] = None
    comparison_value: Optional[Union[str, float]] = None


class ScaleCondition(BaseModel):
    """Reserved: comparison against an opinion-scale rating."""

    id: Optional[str] = None
    field_type: Literal["scale"] = "scale"
    condition_type: Optional[ConditionOperator] = None
    comparison_value: Optional[Union[str, float]] = None


class DimensionCondition(BaseModel):
    """Reserved: comparison against a dimensions answer."""

    id: Optional[str] = None
    field_type: Literal["dimension"] = "dimension"
    condition_type: Optional[ConditionOperator] = None
    comparison_value: Optional[Union[str, float]] = None


class UnrecognizedCondition(BaseModel):
    """Any condition whose ``field_type`` is not a known kind."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    field_type: Optional[Any] = None


_KNOWN_FIELD_TYPES = {"option", "text", "scale", "dimension"}


def _condition_kind(value: Any) -> str:
    """Pick the union member for a raw dict or an already-built condition."""
    if isinstance(value, dict):
        kind = value.get("field_type")
        if kind is None and value.get("option_id") is not None:
            kind = "option"
    else:
        kind = getattr(value, "field_type", None)
    return kind if kind in _KNOWN_FIELD_TYPES else "unrecognized"


LogicCondition = Annotated[
    Union[
        Annotated[OptionCondition, Tag("option")],
        Annotated[TextCondition, Tag("text")],
        Annotated[ScaleCondition, Tag("scale")],
        Annotated[DimensionCondition, Tag("dimension")],
        Annotated[UnrecognizedCondition, Tag("unrecognized")],
    ],
    Discriminator(_condition_kind),
]


# --- Actions ---

class LogicAction(BaseModel):
    """Where to go when a rule (or the default) fires.

    ``go_to_step`` and ``skip_to_step`` target a step by stable id or, for
    legacy rules, by ``target_step_order``.  ``go_to_end`` routes straight
    to submission and needs no target.
    """

    type: Literal["go_to_step", "skip_to_step", "go_to_end"] = "go_to_step"
    target_step_id: Optional[str] = None
    target_step_order: Optional[int] = None


# --- Rules ---

class LogicRule(BaseModel):
    """An If-AND-conditions-Then-action branch, tried lowest ``order`` first."""

    id: Optional[str] = None
    step_id: str
    conditions: List[LogicCondition] = []
    action: LogicAction
    order: int = 0


class DefaultLogicAction(BaseModel):
    """The "all other cases" branch of a step."""

    step_id: str
    action: LogicAction


class StepLogic(BaseModel):
    """Complete rule set for one step."""

    step_id: str
    rules: List[LogicRule] = []
    default_action: Optional[DefaultLogicAction] = None
