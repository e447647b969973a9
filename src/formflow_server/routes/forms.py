"""Form definition endpoints — list forms, inspect one, export its flowchart.

Read-only views over the ``FormStore`` loaded at startup; no database access.
"""

from typing import Any

from fastapi import APIRouter, Depends

from formflow.flowchart import build_flowchart
from formflow.store import FormStore

from formflow_server.dependencies import get_store

router = APIRouter(tags=["forms"])


@router.get("/forms")
async def list_forms(store: FormStore = Depends(get_store)) -> list[dict]:
    """Summaries of every loaded form: id, name, step count."""
    return store.list_forms()


@router.get("/forms/{form_id}")
async def get_form(form_id: str, store: FormStore = Depends(get_store)) -> dict[str, Any]:
    """Full definition of one form: steps (with options) and step logic.

    Raises 404 if the form is unknown.
    """
    graph = store.get_graph(form_id)
    steps = []
    for step in graph.steps:
        data = step.model_dump(mode="json")
        data["options"] = [o.model_dump(mode="json") for o in graph.options_of(step.id)]
        steps.append(data)
    return {
        "id": graph.form_id,
        "name": graph.name,
        "steps": steps,
        "step_logic": [sl.model_dump(mode="json") for sl in graph.step_logic],
    }


@router.get("/forms/{form_id}/flowchart")
async def get_flowchart(form_id: str, store: FormStore = Depends(get_store)) -> dict[str, Any]:
    """Nodes and edges of the form's routing, with broken targets flagged."""
    return build_flowchart(store.get_graph(form_id))
