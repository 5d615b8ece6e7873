"""CLI entrypoint for agentic."""

import logging
from collections.abc import Iterable
from pathlib import Path

import rich_click as click

from agentic import __version__
from agentic.config import Settings
from agentic.orchestrator.controllers import (
    AgentsListCommand,
    OrchestratorCliController,
    TaskRunCommand,
    WorkflowProvisionCommand,
    WorkflowRunCommand,
)

click.rich_click.USE_MARKDOWN = True
ORCHESTRATOR_CONTROLLER = OrchestratorCliController()


@click.group()
@click.version_option(version=__version__, prog_name="agentic")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def agentic(verbose: bool) -> None:
    """Agent task orchestration CLI."""

    level: int | str = logging.DEBUG
    if not verbose:
        try:
            settings = Settings.from_env()
            settings.validate()
            level = settings.log_level
        except ValueError:
            # reported by the subcommand through its controller
            level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
    )


@agentic.group()
def agents() -> None:
    """Provider registry commands."""


@agents.command("list")
def agents_list() -> None:
    """List registered connectors and the task types they support."""

    result = ORCHESTRATOR_CONTROLLER.list_agents(AgentsListCommand())
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Cannot list connectors.")


@agentic.group()
def task() -> None:
    """Scheduled task commands."""


@task.command("run")
@click.option("--category", required=True, help="Task category, for example echo or vm.")
@click.option("--payload", "payload_json", default="{}", show_default=True, help="JSON object.")
@click.option(
    "--workers",
    type=click.IntRange(min=1, max=256),
    default=None,
    help="Worker threads (defaults to AGENTIC_WORKERS).",
)
@click.option(
    "--queue-capacity",
    type=click.IntRange(min=1),
    default=None,
    help="Queue size (defaults to AGENTIC_QUEUE_CAPACITY).",
)
def task_run(
    category: str,
    payload_json: str,
    workers: int | None,
    queue_capacity: int | None,
) -> None:
    """Schedule one task, drain the scheduler and print the outcome."""

    result = ORCHESTRATOR_CONTROLLER.run_task(
        TaskRunCommand(
            category=category,
            payload_json=payload_json,
            workers=workers,
            queue_capacity=queue_capacity,
        ),
    )
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Task failed.")


@agentic.group()
def workflow() -> None:
    """Workflow commands."""


@workflow.command("run")
@click.argument("path", type=click.Path(path_type=Path, exists=True, dir_okay=False))
def workflow_run(path: Path) -> None:
    """Run a workflow definition (JSON) step by step."""

    result = ORCHESTRATOR_CONTROLLER.run_workflow(WorkflowRunCommand(path=path))
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Workflow failed.")


@workflow.command("provision")
@click.option("--name", required=True, help="VM name; also used in the workflow id.")
@click.option("--vm/--no-vm", "use_proxmox", default=True, show_default=True)
@click.option("--node", "proxmox_node", default="pve", show_default=True, help="Proxmox node.")
@click.option("--vmid", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--cpu", type=click.IntRange(min=1), default=2, show_default=True)
@click.option("--memory", type=click.IntRange(min=1), default=2048, show_default=True)
@click.option(
    "--container",
    "containers",
    multiple=True,
    help="Container to deploy as NAME=IMAGE. Can be repeated.",
)
@click.option("--output", "output_path", type=click.Path(path_type=Path), default=None)
def workflow_provision(  # noqa: PLR0913
    name: str,
    use_proxmox: bool,
    proxmox_node: str,
    vmid: int,
    cpu: int,
    memory: int,
    containers: tuple[str, ...],
    output_path: Path | None,
) -> None:
    """Build a VM provisioning workflow and print or save it as JSON."""

    result = ORCHESTRATOR_CONTROLLER.provision_workflow(
        WorkflowProvisionCommand(
            name=name,
            use_proxmox=use_proxmox,
            proxmox_node=proxmox_node,
            vmid=vmid,
            cpu=cpu,
            memory=memory,
            containers=containers,
            output_path=output_path,
        ),
    )
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Cannot build workflow.")


def _emit_lines(lines: Iterable[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    agentic()
