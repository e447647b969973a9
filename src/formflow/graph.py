"""StepGraph — read-only lookup structure over one form's steps, options and logic.

The graph is the substrate the evaluators and the navigation controller
walk.  Steps are ordered by ``step_order``; a step's *index* is its
0-based position in that order.

Every lookup returns ``None`` for an unknown id/order instead of raising,
because authored forms routinely contain dangling references (a rule whose
target step was deleted, an option pointing at a removed order).  Callers
treat ``None`` as "no route".

Usage::

    graph = StepGraph.from_records(form_id, steps, options, step_logic)
    step = graph.get_step("step-3")
    idx = graph.index_of("step-3")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import TypeAdapter

from formflow.models.logic import StepLogic
from formflow.models.step import Option, Step

logger = logging.getLogger(__name__)

_step_adapter = TypeAdapter(Step)


class StepGraph:
    """Steps, options and step logic of a single form with O(1) lookup.

    Args:
        form_id: identifier of the authored form
        steps: the form's steps, in any order
        options: options of any of the steps, linked by ``step_id``
        step_logic: at most one entry per step
        name: optional display name of the form

    Raises:
        ValueError: if two steps share a ``step_order`` or a step id.
    """

    def __init__(
        self,
        form_id: str,
        steps: Iterable[Step],
        options: Iterable[Option] = (),
        step_logic: Iterable[StepLogic] = (),
        *,
        name: str | None = None,
    ) -> None:
        self.form_id = form_id
        self.name = name or form_id

        self._steps: list[Step] = sorted(steps, key=lambda s: s.step_order)
        self._by_id: dict[str, Step] = {}
        self._by_order: dict[int, Step] = {}
        self._index: dict[str, int] = {}

        for idx, step in enumerate(self._steps):
            if step.id in self._by_id:
                raise ValueError(f"Duplicate step id '{step.id}' in form {form_id}")
            if step.step_order in self._by_order:
                raise ValueError(
                    f"Duplicate step_order {step.step_order} in form {form_id}"
                )
            self._by_id[step.id] = step
            self._by_order[step.step_order] = step
            self._index[step.id] = idx

        # Orders should be 1..N; gaps are tolerated but worth a warning
        expected = list(range(1, len(self._steps) + 1))
        if [s.step_order for s in self._steps] != expected:
            logger.warning("Form %s has non-dense step orders", form_id)

        self._options: dict[str, Option] = {}
        self._options_by_step: dict[str, list[Option]] = {s.id: [] for s in self._steps}
        for opt in options:
            if opt.step_id not in self._by_id:
                logger.warning(
                    "Option %s in form %s belongs to unknown step %s, ignoring",
                    opt.id, form_id, opt.step_id,
                )
                continue
            self._options[opt.id] = opt
            self._options_by_step[opt.step_id].append(opt)

        self._logic: dict[str, StepLogic] = {}
        for logic in step_logic:
            if logic.step_id not in self._by_id:
                logger.warning(
                    "Step logic in form %s references unknown step %s, ignoring",
                    form_id, logic.step_id,
                )
                continue
            self._logic[logic.step_id] = logic

    @classmethod
    def from_records(
        cls,
        form_id: str,
        steps: Iterable[dict[str, Any]],
        options: Iterable[dict[str, Any]] = (),
        step_logic: Iterable[dict[str, Any]] = (),
        *,
        name: str | None = None,
    ) -> StepGraph:
        """Build a graph from raw data-store rows (plain dicts)."""
        return cls(
            form_id,
            [_step_adapter.validate_python(raw) for raw in steps],
            [Option(**raw) for raw in options],
            [StepLogic(**raw) for raw in step_logic],
            name=name,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @property
    def steps(self) -> list[Step]:
        """All steps in display order."""
        return list(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def get_step(self, step_id: str | None) -> Step | None:
        """Step by stable id, or None if unknown."""
        if step_id is None:
            return None
        return self._by_id.get(step_id)

    def get_step_by_order(self, order: int | None) -> Step | None:
        """Step by 1-based ``step_order``, or None if unknown."""
        if order is None:
            return None
        return self._by_order.get(order)

    def index_of(self, step_id: str | None) -> int | None:
        """0-based position of a step, or None if unknown."""
        if step_id is None:
            return None
        return self._index.get(step_id)

    def step_at(self, index: int) -> Step | None:
        """Step at a 0-based position, or None when out of range."""
        if 0 <= index < len(self._steps):
            return self._steps[index]
        return None

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def options_of(self, step_id: str) -> list[Option]:
        """Options owned by a step (empty for unknown steps)."""
        return list(self._options_by_step.get(step_id, []))

    def get_option(self, option_id: str | None) -> Option | None:
        """Option by id, or None if unknown."""
        if option_id is None:
            return None
        return self._options.get(option_id)

    # ------------------------------------------------------------------
    # Logic
    # ------------------------------------------------------------------

    def logic_for(self, step_id: str) -> StepLogic | None:
        """The step's StepLogic entry, or None if it has none at all."""
        return self._logic.get(step_id)

    @property
    def step_logic(self) -> list[StepLogic]:
        """All StepLogic entries, in step order."""
        return [self._logic[s.id] for s in self._steps if s.id in self._logic]
