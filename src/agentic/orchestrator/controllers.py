"""Controllers for orchestrator CLI commands."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path

from agentic.config import Settings
from agentic.orchestrator.contracts import (
    WorkflowDefinitionError,
    read_workflow,
    workflow_result_to_dict,
    workflow_to_dict,
    write_json,
)
from agentic.orchestrator.models import TaskStatus
from agentic.orchestrator.provisioning import (
    ContainerSpec,
    ProvisioningConfig,
    create_provisioning_workflow,
)
from agentic.orchestrator.services import ProviderFactory, build_service


@dataclass(slots=True)
class AgentsListCommand:
    """CLI input for connector listing."""


@dataclass(slots=True)
class TaskRunCommand:
    """CLI input for a one-off scheduled task."""

    category: str
    payload_json: str = "{}"
    workers: int | None = None
    queue_capacity: int | None = None


@dataclass(slots=True)
class WorkflowRunCommand:
    """CLI input for running a workflow definition file."""

    path: Path


@dataclass(slots=True)
class WorkflowProvisionCommand:
    """CLI input for building a provisioning workflow."""

    name: str
    use_proxmox: bool = True
    proxmox_node: str = "pve"
    vmid: int = 0
    cpu: int = 2
    memory: int = 2048
    containers: tuple[str, ...] = ()
    output_path: Path | None = None


@dataclass(slots=True)
class CommandResult:
    """Printable output plus overall success flag."""

    lines: list[str] = field(default_factory=list)
    success: bool = True


class OrchestratorCliController:
    """CLI controller for registry, scheduler and workflow operations."""

    def __init__(self, factories: dict[str, ProviderFactory] | None = None) -> None:
        self.factories = factories or {}

    def list_agents(self, command: AgentsListCommand) -> CommandResult:  # noqa: ARG002
        """One JSON line per registered connector."""

        try:
            service = build_service(Settings.from_env(), self.factories)
        except ValueError as error:
            return CommandResult(lines=[f"Invalid configuration: {error}"], success=False)
        connectors = service.list_connectors()
        if not connectors:
            return CommandResult(lines=["No connectors registered."])
        return CommandResult(
            lines=[json.dumps(connector.to_dict(), sort_keys=True) for connector in connectors],
        )

    def run_task(self, command: TaskRunCommand) -> CommandResult:
        try:
            payload = json.loads(command.payload_json)
        except json.JSONDecodeError as error:
            return CommandResult(lines=[f"Invalid --payload JSON: {error}"], success=False)
        if not isinstance(payload, dict):
            return CommandResult(lines=["--payload must be a JSON object."], success=False)

        try:
            settings = Settings.from_env()
            scheduler_settings = settings.scheduler
            if command.queue_capacity is not None:
                scheduler_settings = replace(
                    scheduler_settings,
                    queue_capacity=command.queue_capacity,
                )
            if command.workers is not None:
                scheduler_settings = replace(scheduler_settings, workers=command.workers)
            settings = replace(settings, scheduler=scheduler_settings)
            service = build_service(settings, self.factories)
        except ValueError as error:
            return CommandResult(lines=[f"Invalid configuration: {error}"], success=False)

        with service:
            service.start(settings.scheduler.workers)
            task = service.submit_task(command.category, payload)
        lines = [
            f"Task {task.id}",
            f"  Category: {task.category}",
            f"  Status:   {task.status.value}",
            f"  Provider: {task.provider or '-'}",
        ]
        if task.result is not None:
            lines.append(f"  Result:   {json.dumps(task.result.to_dict(), default=str)}")
        return CommandResult(lines=lines, success=task.status == TaskStatus.DONE)

    def run_workflow(self, command: WorkflowRunCommand) -> CommandResult:
        try:
            workflow = read_workflow(command.path)
        except (OSError, json.JSONDecodeError, WorkflowDefinitionError) as error:
            return CommandResult(lines=[f"Cannot load workflow: {error}"], success=False)

        try:
            service = build_service(Settings.from_env(), self.factories)
        except ValueError as error:
            return CommandResult(lines=[f"Invalid configuration: {error}"], success=False)
        result = service.run_workflow(workflow)

        lines = [f"Workflow {workflow.id} ({workflow.name})"]
        for step in result.steps:
            line = f"  {step.order}. {step.step_id}: {step.status.value}"
            if step.error:
                line += f" ({step.error})"
            lines.append(line)
        skipped = len(workflow.steps) - len(result.steps)
        if skipped:
            lines.append(f"  Not attempted: {skipped} step(s)")
        lines.append(f"Status: {result.status.value}")
        if result.error:
            lines.append(f"Error: {result.error}")
        lines.append(json.dumps(workflow_result_to_dict(result), sort_keys=True, default=str))
        return CommandResult(lines=lines, success=result.succeeded)

    def provision_workflow(self, command: WorkflowProvisionCommand) -> CommandResult:
        containers: list[ContainerSpec] = []
        for raw in command.containers:
            name, sep, image = raw.partition("=")
            if not sep or not name.strip() or not image.strip():
                return CommandResult(
                    lines=[f"Invalid --container value {raw!r}. Expected NAME=IMAGE."],
                    success=False,
                )
            containers.append(ContainerSpec(name=name.strip(), image=image.strip()))

        workflow = create_provisioning_workflow(
            ProvisioningConfig(
                name=command.name,
                vmid=command.vmid,
                cpu=command.cpu,
                memory=command.memory,
                use_proxmox=command.use_proxmox,
                proxmox_node=command.proxmox_node,
                containers=containers,
            ),
        )
        payload = workflow_to_dict(workflow)
        if command.output_path is not None:
            write_json(command.output_path, payload)
            return CommandResult(
                lines=[
                    f"Wrote workflow {workflow.id} ({len(workflow.steps)} steps) "
                    f"to {command.output_path}",
                ],
            )
        return CommandResult(lines=[json.dumps(payload, indent=2, sort_keys=True)])
