"""Load and validate workflow files into WorkflowDefinition objects.

Accepts YAML or JSON (``yaml.safe_load`` reads both). Only structure is
checked here: unknown trigger or action types are left for the engine, which
records them as a failed run.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from minizap.config.schema import WorkflowFile
from minizap.exceptions import WorkflowValidationError
from minizap.types import ActionSpec, TriggerSpec, WorkflowConfiguration, WorkflowDefinition

_SUFFIXES = {".yaml", ".yml", ".json"}


def parse_workflow(raw: Any) -> WorkflowDefinition:
    """Validate an already-parsed mapping → WorkflowDefinition.

    Raises:
        WorkflowValidationError: with one violation string per schema error.
    """
    try:
        entry = WorkflowFile.model_validate(raw or {})
    except ValidationError as exc:
        violations = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise WorkflowValidationError(
            f"Invalid workflow definition ({len(violations)} problem(s))",
            violations=violations,
        ) from exc

    kwargs = {}
    if entry.id:
        kwargs["id"] = entry.id
    return WorkflowDefinition(
        user_id=entry.user_id,
        name=entry.name,
        description=entry.description,
        is_active=entry.is_active,
        configuration=WorkflowConfiguration(
            triggers=[TriggerSpec(type=t.type, config=t.config) for t in entry.triggers],
            actions=[ActionSpec(type=a.type, config=a.config) for a in entry.actions],
        ),
        **kwargs,
    )


def load_workflow_file(path: Path) -> WorkflowDefinition:
    """Load a workflow file → WorkflowDefinition.

    Args:
        path: Path to a .yaml, .yml or .json workflow file.

    Raises:
        FileNotFoundError: if the file does not exist.
        WorkflowValidationError: if the file is not a valid workflow.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Workflow file not found: {p}")
    if p.suffix.lower() not in _SUFFIXES:
        raise WorkflowValidationError(
            f"Unsupported workflow file type: {p.suffix or '<none>'}",
            violations=[f"suffix must be one of {sorted(_SUFFIXES)}"],
        )
    try:
        raw = yaml.safe_load(p.read_text())
    except yaml.YAMLError as exc:
        raise WorkflowValidationError(f"Could not parse {p.name}: {exc}") from exc
    return parse_workflow(raw)
