"""JSON contracts for workflow definitions and run results."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from agentic.orchestrator.models import Workflow, WorkflowResult, WorkflowStep


class WorkflowDefinitionError(ValueError):
    """Workflow document does not match the expected shape."""


def write_json(path: Path, payload: dict[str, Any]) -> None:
    """Persist JSON payload using deterministic formatting."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True, default=str),
        "utf-8",
    )


def load_json(path: Path) -> dict[str, Any]:
    """Load JSON document and validate top-level object type."""

    payload = json.loads(path.read_text("utf-8"))
    if not isinstance(payload, dict):
        raise WorkflowDefinitionError(f"Expected JSON object in {path}")
    return payload


def read_workflow(path: Path) -> Workflow:
    """Deserialize and validate a workflow definition file."""

    return workflow_from_dict(load_json(path))


def workflow_from_dict(raw: dict[str, Any]) -> Workflow:
    workflow_id = raw.get("id")
    name = raw.get("name", workflow_id)
    description = raw.get("description", "")
    raw_steps = raw.get("steps", [])
    if not isinstance(workflow_id, str) or not workflow_id.strip():
        raise WorkflowDefinitionError("workflow.id must be a non-empty string")
    if not isinstance(name, str):
        raise WorkflowDefinitionError("workflow.name must be a string")
    if not isinstance(description, str):
        raise WorkflowDefinitionError("workflow.description must be a string")
    if not isinstance(raw_steps, list):
        raise WorkflowDefinitionError("workflow.steps must be an array")

    steps = [_step_from_dict(index, item) for index, item in enumerate(raw_steps)]
    return Workflow(id=workflow_id, name=name, description=description, steps=steps)


def _step_from_dict(index: int, raw: object) -> WorkflowStep:
    where = f"workflow.steps[{index}]"
    if not isinstance(raw, dict):
        raise WorkflowDefinitionError(f"{where} must be an object")
    step_id = raw.get("id")
    task_type = raw.get("task_type")
    name = raw.get("name", step_id)
    parameters = raw.get("parameters") or {}
    depends_on = raw.get("depends_on") or []
    continue_on_error = raw.get("continue_on_error", False)

    if not isinstance(step_id, str) or not step_id.strip():
        raise WorkflowDefinitionError(f"{where}.id must be a non-empty string")
    if not isinstance(task_type, str) or not task_type.strip():
        raise WorkflowDefinitionError(f"{where}.task_type must be a non-empty string")
    if not isinstance(name, str):
        raise WorkflowDefinitionError(f"{where}.name must be a string")
    if not isinstance(parameters, dict):
        raise WorkflowDefinitionError(f"{where}.parameters must be an object")
    if not isinstance(depends_on, list) or not all(isinstance(d, str) for d in depends_on):
        raise WorkflowDefinitionError(f"{where}.depends_on must be an array of strings")
    if not isinstance(continue_on_error, bool):
        raise WorkflowDefinitionError(f"{where}.continue_on_error must be a boolean")

    return WorkflowStep(
        id=step_id,
        name=name,
        task_type=task_type,
        parameters=parameters,
        depends_on=list(depends_on),
        continue_on_error=continue_on_error,
    )


def workflow_to_dict(workflow: Workflow) -> dict[str, Any]:
    return {
        "id": workflow.id,
        "name": workflow.name,
        "description": workflow.description,
        "steps": [
            {
                "id": step.id,
                "name": step.name,
                "task_type": step.task_type,
                "parameters": step.parameters,
                "depends_on": list(step.depends_on),
                "continue_on_error": step.continue_on_error,
            }
            for step in workflow.steps
        ],
    }


def workflow_result_to_dict(result: WorkflowResult) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "workflow_id": result.workflow_id,
        "status": result.status.value,
        "steps": [],
    }
    for step in result.steps:
        entry: dict[str, Any] = {
            "step_id": step.step_id,
            "name": step.name,
            "order": step.order,
            "status": step.status.value,
        }
        if step.output is not None:
            entry["output"] = step.output
        if step.error:
            entry["error"] = step.error
        payload["steps"].append(entry)
    if result.error:
        payload["error"] = result.error
    return payload
