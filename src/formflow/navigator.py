"""NavigationController — the state machine that walks a respondent through a form.

The controller owns a serializable :class:`NavigationState` and mutates it
only through three operations:

  - :meth:`can_advance` — required-field gate for the current step
  - :meth:`advance`     — gate, record the answer, route to the next step
  - :meth:`retreat`     — pop the back-history

Routing for :meth:`advance`, first hit wins:

  1. loop_section with ``add_another`` (under its iteration cap) → loop start
  2. the step's StepLogic (rules in order, then default)
  3. legacy option ``jump_to_step`` — only when the step has no StepLogic
  4. sequential: current index + 1

A target past the last step (or a go_to_end action) moves the session to
``submitting``, invokes the submission handler once, then ``complete``.

The controller is synchronous and keeps no locks: one controller serves
one respondent session and must not be shared.
"""

from __future__ import annotations

import logging

from formflow.constants import END_OF_FORM, VISUAL_CARD_KINDS
from formflow.evaluator import RuleEvaluator
from formflow.graph import StepGraph
from formflow.interfaces import SubmissionHandler, TransitionListener
from formflow.models.answer import Answer
from formflow.models.session import (
    AdvanceResult,
    FormSubmission,
    NavigationPhase,
    NavigationState,
    TransitionEvent,
    ValidationResult,
)
from formflow.models.step import LoopSectionStep, Step
from formflow.validation import AnswerValidator

logger = logging.getLogger(__name__)


class NavigationController:
    """Holds position, back-history and answers for one respondent session.

    Args:
        graph: the form's step graph
        state: previously persisted state to resume from (default: start)
        answers: previously recorded answers keyed by step id
        listener: presentation hook for card transitions
        submission: side effect invoked when the form is submitted
    """

    def __init__(
        self,
        graph: StepGraph,
        *,
        state: NavigationState | None = None,
        answers: dict[str, Answer] | None = None,
        listener: TransitionListener | None = None,
        submission: SubmissionHandler | None = None,
        rules: RuleEvaluator | None = None,
        validator: AnswerValidator | None = None,
    ) -> None:
        self._graph = graph
        self._state = state.model_copy(deep=True) if state is not None else NavigationState()
        self._answers: dict[str, Answer] = dict(answers or {})
        self._listener = listener
        self._submission = submission
        self._rules = rules or RuleEvaluator()
        self._validator = validator or AnswerValidator()

        # An empty back-stack is never valid; re-seed it with the start index
        if not self._state.history:
            self._state.history = [0]

    # ==================================================================
    # Read-only views
    # ==================================================================

    @property
    def state(self) -> NavigationState:
        """A copy of the current state, safe to serialize or persist."""
        return self._state.model_copy(deep=True)

    @property
    def answers(self) -> dict[str, Answer]:
        return dict(self._answers)

    @property
    def current_index(self) -> int:
        return self._state.current_index

    @property
    def phase(self) -> NavigationPhase:
        return self._state.phase

    @property
    def current_step(self) -> Step | None:
        return self._graph.step_at(self._state.current_index)

    @property
    def can_go_back(self) -> bool:
        return self._state.phase == NavigationPhase.ACTIVE and (
            len(self._state.history) > 1 or self._state.current_index > 0
        )

    # ==================================================================
    # Operations
    # ==================================================================

    def can_advance(self, step: Step, answer: Answer | None) -> ValidationResult:
        """Required-field gate for ``step``.  Never raises, never mutates."""
        return self._validator.check(step, answer)

    def advance(self, answer: Answer | None) -> AdvanceResult:
        """Validate the answer to the current step and move forward.

        On a validation failure nothing changes and the reasons are
        returned.  On success the current index is pushed onto the
        history and the next step becomes current.

        Raises:
            ValueError: if the session is not active or the current index
                does not point at a step.
        """
        self._require_active("advance")
        step = self.current_step
        if step is None:
            raise ValueError(
                f"Cannot advance: index {self._state.current_index} is outside "
                f"form {self._graph.form_id}"
            )
        answer = answer or Answer()
        from_index = self._state.current_index

        validation = self.can_advance(step, answer)
        if not validation.ok:
            return AdvanceResult(
                accepted=False,
                reasons=validation.reasons,
                from_index=from_index,
                to_index=from_index,
                phase=self._state.phase,
            )

        self._answers[step.id] = answer
        to_index = self._next_index(step, answer)

        if to_index >= len(self._graph):
            self._submit()
            return AdvanceResult(
                accepted=True,
                from_index=from_index,
                to_index=from_index,
                phase=self._state.phase,
            )

        transition = self._notify(step, self._graph.step_at(to_index), "forward")
        self._state.history.append(from_index)
        self._state.current_index = to_index
        logger.debug(
            "Form %s: advanced %d -> %d", self._graph.form_id, from_index, to_index,
        )
        return AdvanceResult(
            accepted=True,
            from_index=from_index,
            to_index=to_index,
            phase=self._state.phase,
            transition=transition,
        )

    def retreat(self) -> AdvanceResult:
        """Go back to the previously visited step.

        Pops the history when it holds more than the starting entry;
        otherwise steps back one index, never below 0.

        Raises:
            ValueError: if the session is not active.
        """
        self._require_active("retreat")
        from_index = self._state.current_index

        if len(self._state.history) > 1:
            to_index = self._state.history[-1]
        else:
            to_index = max(0, from_index - 1)

        transition = self._notify(
            self._graph.step_at(from_index), self._graph.step_at(to_index), "backward",
        )
        if len(self._state.history) > 1:
            self._state.history.pop()
        self._state.current_index = to_index

        return AdvanceResult(
            accepted=True,
            from_index=from_index,
            to_index=to_index,
            phase=self._state.phase,
            transition=transition,
        )

    # ==================================================================
    # Internal: routing
    # ==================================================================

    def _next_index(self, step: Step, answer: Answer) -> int:
        """Compute the index to move to after a valid answer on ``step``."""
        current = self._state.current_index

        if isinstance(step, LoopSectionStep):
            loop_index = self._loop_back_index(step, answer)
            if loop_index is not None:
                return loop_index

        logic = self._graph.logic_for(step.id)
        if logic is not None:
            target = self._rules.next_step_id(logic, answer, self._graph)
            if target == END_OF_FORM:
                return len(self._graph)
            if target is not None:
                return self._graph.index_of(target)
            return current + 1

        # Legacy per-option shortcut, only for steps without any StepLogic
        option = self._graph.get_option(answer.selected_option_id)
        if option is not None and option.step_id == step.id and option.jump_to_step:
            target_step = self._graph.get_step_by_order(option.jump_to_step)
            if target_step is not None:
                return self._graph.index_of(target_step.id)
            logger.warning(
                "Option %s jumps to unknown step_order %s, advancing sequentially",
                option.id, option.jump_to_step,
            )

        return current + 1

    def _loop_back_index(self, step: LoopSectionStep, answer: Answer) -> int | None:
        """Index of the loop start if the respondent asked for another round."""
        if answer.loop_choice != "add_another":
            return None

        done = self._state.loop_iterations.get(step.id, 0)
        if step.loop_max_iterations is not None and done >= step.loop_max_iterations:
            logger.info("Loop %s reached its limit of %d", step.id, step.loop_max_iterations)
            return None

        start = self._graph.index_of(step.loop_start_step_id)
        if start is None:
            logger.warning(
                "Loop %s starts at unknown step %s, ignoring",
                step.id, step.loop_start_step_id,
            )
            return None

        self._state.loop_iterations[step.id] = done + 1
        return start

    # ==================================================================
    # Internal: side channels
    # ==================================================================

    def _notify(
        self, from_step: Step | None, to_step: Step | None, direction: str,
    ) -> TransitionEvent | None:
        """Tell the presentation hook about a card-to-card transition."""
        if from_step is None or to_step is None:
            return None
        if from_step.question_type not in VISUAL_CARD_KINDS:
            return None
        if to_step.question_type not in VISUAL_CARD_KINDS:
            return None

        event = TransitionEvent(
            direction=direction,
            from_kind=from_step.question_type,
            to_kind=to_step.question_type,
        )
        if self._listener is not None:
            try:
                self._listener.on_transition(event)
            except Exception:
                logger.exception("Transition listener failed for %s", event)
        return event

    def _submit(self) -> None:
        """Move to ``submitting``, hand off the answers once, then ``complete``."""
        self._state.phase = NavigationPhase.SUBMITTING
        submission = self.build_submission()
        logger.info(
            "Form %s submitted with %d answers", self._graph.form_id, len(submission.answers),
        )
        if self._submission is not None:
            try:
                self._submission.submit(submission)
            except Exception:
                logger.exception("Submission handler failed for form %s", self._graph.form_id)
        self._state.phase = NavigationPhase.COMPLETE

    def build_submission(self) -> FormSubmission:
        """Answers for the steps on the visited path, in visit order.

        Answers recorded on branches the respondent backed out of are not
        included.
        """
        path: list[str] = []
        for index in [*self._state.history, self._state.current_index]:
            step = self._graph.step_at(index)
            if step is not None and step.id not in path:
                path.append(step.id)

        return FormSubmission(
            form_id=self._graph.form_id,
            answers={sid: self._answers[sid] for sid in path if sid in self._answers},
            path=path,
        )

    def _require_active(self, operation: str) -> None:
        if self._state.phase != NavigationPhase.ACTIVE:
            raise ValueError(
                f"Cannot {operation}: session phase is '{self._state.phase.value}', "
                f"expected 'active'"
            )
