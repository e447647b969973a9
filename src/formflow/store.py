"""FormStore — loads authored form definitions from YAML into step graphs.

Forms are read once at startup and served from memory afterwards.  Each
``*.yaml`` file under the forms directory holds one form::

    id: kitchen-quote
    name: Kitchen Quote
    steps:
      - id: step-style
        step_order: 1
        title: Pick a style
        question_type: image_selection
        options:
          - {id: opt-modern, label: Modern, jump_to_step: 3}
    step_logic:
      - step_id: step-style
        rules:
          - order: 0
            conditions: [{field_type: option, option_id: opt-modern}]
            action: {type: go_to_step, target_step_id: step-finish}
        default_action:
          action: {type: go_to_step, target_step_order: 2}

Options are nested under their step; rules and default actions inherit
``step_id`` from their enclosing entry when it is omitted.

Usage::

    store = FormStore()          # defaults to forms/ relative to repo root
    store.load()
    graph = store.get_graph("kitchen-quote")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from formflow.graph import StepGraph
from formflow.models.logic import StepLogic
from formflow.models.step import Option, step_mapper

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def parse_form(raw: dict[str, Any]) -> StepGraph:
    """Turn one parsed YAML form document into a StepGraph.

    Raises:
        ValueError: on an unknown ``question_type`` or a duplicate step order.
    """
    form_id = raw["id"]
    steps = []
    options: list[Option] = []

    for s_dict in raw.get("steps") or []:
        s_dict = dict(s_dict)
        nested_options = s_dict.pop("options", None) or []

        qtype = s_dict.get("question_type")
        cls = step_mapper.get(qtype)
        if cls is None:
            raise ValueError(f"Unknown question_type '{qtype}' in form {form_id}")
        step = cls(**s_dict)
        steps.append(step)

        for o_dict in nested_options:
            options.append(Option(**{"step_id": step.id, **o_dict}))

    step_logic: list[StepLogic] = []
    for l_dict in raw.get("step_logic") or []:
        step_id = l_dict["step_id"]
        rules = [{"step_id": step_id, **r} for r in l_dict.get("rules") or []]
        default = l_dict.get("default_action")
        if default is not None:
            default = {"step_id": step_id, **default}
        step_logic.append(
            StepLogic(step_id=step_id, rules=rules, default_action=default)
        )

    return StepGraph(form_id, steps, options, step_logic, name=raw.get("name"))


# ---------------------------------------------------------------------------
# FormStore
# ---------------------------------------------------------------------------

class FormStore:
    """Loads every form under ``forms/`` and provides lookup by form id.

    Attributes populated after :meth:`load`:

        graphs — dict[form_id, StepGraph]
    """

    def __init__(self, forms_dir: str | Path | None = None) -> None:
        if forms_dir is None:
            forms_dir = find_repo_root() / "forms"
        self._base = Path(forms_dir)

        # Populated by load()
        self.graphs: dict[str, StepGraph] = {}

    def load(self) -> None:
        """Parse all YAML files under the forms directory.

        Call this once at startup.  Raises ``FileNotFoundError`` if the
        directory is missing and ``ValueError`` on duplicate form ids.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing forms directory: {self._base}")

        for path in sorted(self._base.glob("*.yaml")):
            graph = parse_form(load_yaml(path))
            if graph.form_id in self.graphs:
                raise ValueError(f"Form '{graph.form_id}' already exists ({path.name})")
            self.graphs[graph.form_id] = graph

        logger.info("FormStore loaded: %d forms from %s", len(self.graphs), self._base)

    def add(self, graph: StepGraph) -> None:
        """Register a graph built elsewhere (e.g. from data-store rows)."""
        self.graphs[graph.form_id] = graph

    def get_graph(self, form_id: str) -> StepGraph:
        """Look up a form's graph.

        Raises:
            KeyError: if the form is not loaded.
        """
        return self.graphs[form_id]

    def list_forms(self) -> list[dict]:
        """Summaries suitable for API responses: {id, name, step_count}."""
        return [
            {"id": g.form_id, "name": g.name, "step_count": len(g)}
            for g in self.graphs.values()
        ]
