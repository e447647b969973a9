"""Flowchart export — nodes and edges describing a form's navigation graph.

Used by authoring views to draw the whole form and to spot broken
references.  The output is a cytoscape-style ``{"nodes": [...], "edges": [...]}``
dict, with a virtual start and end node around the steps.
"""

from __future__ import annotations

from typing import Any, Dict, List

from formflow.constants import END_OF_FORM, STEP_KIND_NAMES
from formflow.evaluator import RuleEvaluator
from formflow.graph import StepGraph
from formflow.models.step import LoopSectionStep

START_NODE = "__start__"


def _edge(source: str, target: str | None, label: str) -> Dict[str, Any]:
    # Unresolvable targets point at the end node and are flagged for the UI
    return {
        "data": {
            "source": source,
            "target": target or END_OF_FORM,
            "label": label,
            "broken": target is None,
        }
    }


def build_flowchart(graph: StepGraph) -> Dict[str, Any]:
    nodes: List[Dict[str, Any]] = [
        {"data": {"id": START_NODE, "label": "Start Form", "type": "start"}},
    ]
    edges: List[Dict[str, Any]] = []

    steps = graph.steps
    if steps:
        edges.append(_edge(START_NODE, steps[0].id, "start"))
    else:
        edges.append(_edge(START_NODE, END_OF_FORM, "start"))

    for idx, step in enumerate(steps):
        logic = graph.logic_for(step.id)
        data = {
            "id": step.id,
            "label": f"{step.step_order}. {step.title}",
            "type": step.question_type,
            "kind": STEP_KIND_NAMES.get(step.question_type, step.question_type),
            "required": step.is_required,
            "rule_count": len(logic.rules) if logic else 0,
        }
        options = graph.options_of(step.id)
        if options:
            data["options"] = [{"id": o.id, "label": o.label} for o in options]
        nodes.append({"data": data})

        next_id = steps[idx + 1].id if idx + 1 < len(steps) else END_OF_FORM

        if isinstance(step, LoopSectionStep) and step.loop_start_step_id:
            start = graph.get_step(step.loop_start_step_id)
            edges.append(_edge(
                step.id, start.id if start else None, step.loop_label or "add another",
            ))

        if logic is not None:
            for n, rule in enumerate(sorted(logic.rules, key=lambda r: r.order), start=1):
                edges.append(_edge(step.id, RuleEvaluator.resolve_action(rule.action, graph), f"Rule {n}"))
            if logic.default_action is not None:
                edges.append(_edge(
                    step.id, RuleEvaluator.resolve_action(logic.default_action.action, graph), "Otherwise",
                ))
            else:
                edges.append(_edge(step.id, next_id, "next"))
            continue

        # Legacy option jumps only apply when the step has no logic
        for opt in options:
            if opt.jump_to_step:
                target = graph.get_step_by_order(opt.jump_to_step)
                edges.append(_edge(step.id, target.id if target else None, opt.label))
        edges.append(_edge(step.id, next_id, "next"))

    nodes.append({"data": {"id": END_OF_FORM, "label": "End of Form", "type": "end"}})
    return {"nodes": nodes, "edges": edges}
