"""Condition and rule evaluation — turns (step logic, answer) into a target step.

Two evaluators, leaves first:

  - **ConditionEvaluator**: decides whether one condition holds for an
    answer.  Only option-equality is implemented; every other condition
    kind fails closed (non-match), never raises.
  - **RuleEvaluator**: tries a step's rules lowest ``order`` first with
    AND semantics inside a rule, takes the first rule whose action
    resolves, then the default action, else returns ``None`` so the
    caller falls through to sequential advance.

A rule whose action target does not resolve against the graph is skipped
and scanning continues with the next rule.
"""

from __future__ import annotations

import logging

from formflow.constants import END_OF_FORM
from formflow.graph import StepGraph
from formflow.models.answer import Answer
from formflow.models.logic import (
    DimensionCondition,
    LogicAction,
    LogicCondition,
    OptionCondition,
    ScaleCondition,
    StepLogic,
    TextCondition,
    UnrecognizedCondition,
)

logger = logging.getLogger(__name__)


class ConditionEvaluator:
    """Evaluates a single LogicCondition against a respondent answer."""

    def matches(self, condition: LogicCondition, answer: Answer) -> bool:
        """Dispatch on the condition kind.

        Returns:
            True only for an option condition whose ``option_id`` equals
            the answer's ``selected_option_id``.  All other kinds are
            reserved and return False.
        """
        if isinstance(condition, OptionCondition):
            return self._eval_option(condition, answer)
        elif isinstance(condition, (TextCondition, ScaleCondition, DimensionCondition)):
            logger.debug(
                "Condition kind %r is not evaluated, treating as non-match",
                condition.field_type,
            )
            return False
        elif isinstance(condition, UnrecognizedCondition):
            logger.warning(
                "Unrecognized condition field_type %r, treating as non-match",
                condition.field_type,
            )
            return False
        else:
            logger.warning("matches() called with unknown condition: %r", condition)
            return False

    @staticmethod
    def _eval_option(condition: OptionCondition, answer: Answer) -> bool:
        if condition.option_id is None or answer.selected_option_id is None:
            return False
        return answer.selected_option_id == condition.option_id


class RuleEvaluator:
    """Resolves a step's StepLogic to the id of the next step."""

    def __init__(self, conditions: ConditionEvaluator | None = None) -> None:
        self._conditions = conditions or ConditionEvaluator()

    def next_step_id(
        self,
        step_logic: StepLogic,
        answer: Answer,
        graph: StepGraph,
    ) -> str | None:
        """Evaluate rules in order; first resolvable match wins.

        Returns:
            The target step id, ``END_OF_FORM`` for a go_to_end action, or
            None when nothing matched and resolved (sequential advance).
        """
        # Stored order may have gaps or be unsorted
        for rule in sorted(step_logic.rules, key=lambda r: r.order):
            if not self._rule_matches(rule.conditions, answer):
                continue
            target = self.resolve_action(rule.action, graph)
            if target is not None:
                return target
            logger.warning(
                "Rule %s on step %s matched but its target does not resolve, skipping",
                rule.id, step_logic.step_id,
            )

        if step_logic.default_action is not None:
            target = self.resolve_action(step_logic.default_action.action, graph)
            if target is not None:
                return target
            logger.warning(
                "Default action on step %s does not resolve, falling through",
                step_logic.step_id,
            )

        return None

    def _rule_matches(self, conditions: list[LogicCondition], answer: Answer) -> bool:
        """AND all conditions; ``all`` stops at the first failing one."""
        return all(self._conditions.matches(c, answer) for c in conditions)

    @staticmethod
    def resolve_action(action: LogicAction, graph: StepGraph) -> str | None:
        """Map an action to a step id, ``END_OF_FORM``, or None if unresolvable.

        The stable id takes precedence over the legacy ``target_step_order``.
        """
        if action.type == "go_to_end":
            return END_OF_FORM

        step = graph.get_step(action.target_step_id)
        if step is None:
            step = graph.get_step_by_order(action.target_step_order)
        if step is None:
            return None
        return step.id
