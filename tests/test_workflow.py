from __future__ import annotations

import threading

import allure
import pytest

from agentic.orchestrator.backend import EchoAgent
from agentic.orchestrator.errors import NoCapableAgentError
from agentic.orchestrator.models import (
    StepStatus,
    Task,
    TaskStatus,
    Workflow,
    WorkflowStatus,
    WorkflowStep,
)
from agentic.orchestrator.registry import AgentRegistry
from agentic.orchestrator.workflow import WorkflowOrchestrator

pytestmark = [
    allure.epic("Orchestration Core"),
    allure.feature("Workflow Orchestrator"),
]


def _step(step_id: str, task_type: str = "echo", **kwargs) -> WorkflowStep:
    return WorkflowStep(id=step_id, name=f"Step {step_id}", task_type=task_type, **kwargs)


def test_steps_run_in_declared_order(registry: AgentRegistry, fake_agent_factory) -> None:
    agent = fake_agent_factory("echo", ("echo",))
    registry.register(agent)
    workflow = Workflow(
        id="wf-1",
        name="three steps",
        steps=[_step("s1", parameters={"n": 1}), _step("s2"), _step("s3")],
    )

    result = WorkflowOrchestrator(registry).run_workflow(workflow)

    assert result.workflow_id == "wf-1"
    assert result.status == WorkflowStatus.COMPLETED
    assert result.error is None
    assert [step.step_id for step in result.steps] == ["s1", "s2", "s3"]
    assert [step.order for step in result.steps] == [1, 2, 3]
    assert all(step.status == StepStatus.COMPLETED for step in result.steps)
    assert result.steps[0].output == {"n": 1}
    assert [task.payload for task in agent.executed] == [{"n": 1}, {}, {}]


def test_missing_provider_aborts_remaining_steps(registry: AgentRegistry) -> None:
    registry.register(EchoAgent())
    workflow = Workflow(
        id="wf-abort",
        name="abort",
        steps=[_step("s1"), _step("s2", task_type="gpu", continue_on_error=True), _step("s3")],
    )

    result = WorkflowOrchestrator(registry).run_workflow(workflow)

    assert result.status == WorkflowStatus.FAILED
    assert [step.step_id for step in result.steps] == ["s1", "s2"]
    assert result.steps[0].status == StepStatus.COMPLETED
    assert result.steps[1].status == StepStatus.FAILED
    assert result.steps[1].error == "no agent supports task type: gpu"
    assert result.error == "workflow step 2 failed: no agent supports task type: gpu"


def test_provider_exception_aborts_even_with_continue_on_error(
    registry: AgentRegistry,
    fake_agent_factory,
) -> None:
    registry.register(fake_agent_factory("vm", ("vm",), raises=RuntimeError("api down")))
    registry.register(EchoAgent())
    workflow = Workflow(
        id="wf-raise",
        name="raise",
        steps=[_step("s1", task_type="vm", continue_on_error=True), _step("s2")],
    )

    result = WorkflowOrchestrator(registry).run_workflow(workflow)

    assert result.status == WorkflowStatus.FAILED
    assert len(result.steps) == 1
    assert result.steps[0].status == StepStatus.FAILED
    assert result.steps[0].error == "api down"
    assert result.error == "workflow step 1 failed: api down"


def test_soft_error_with_continue_on_error_proceeds(registry: AgentRegistry) -> None:
    registry.register(EchoAgent())
    workflow = Workflow(
        id="wf-soft",
        name="soft",
        steps=[
            _step("s1"),
            _step("s2", parameters={"error": "disk nearly full"}, continue_on_error=True),
            _step("s3", parameters={"last": True}),
        ],
    )

    result = WorkflowOrchestrator(registry).run_workflow(workflow)

    assert result.status == WorkflowStatus.COMPLETED
    assert [step.step_id for step in result.steps] == ["s1", "s2", "s3"]
    assert result.steps[1].status == StepStatus.COMPLETED
    assert result.steps[1].error == "disk nearly full"
    assert result.steps[2].output == {"last": True}


def test_soft_error_without_continue_on_error_aborts(registry: AgentRegistry) -> None:
    registry.register(EchoAgent())
    workflow = Workflow(
        id="wf-soft-abort",
        name="soft abort",
        steps=[_step("s1", parameters={"error": "bad image"}), _step("s2")],
    )

    result = WorkflowOrchestrator(registry).run_workflow(workflow)

    assert result.status == WorkflowStatus.FAILED
    assert len(result.steps) == 1
    assert result.steps[0].status == StepStatus.COMPLETED
    assert result.steps[0].error == "bad image"
    assert result.error == "workflow step 1 had error: bad image"


def test_depends_on_does_not_reorder_steps(registry: AgentRegistry, fake_agent_factory) -> None:
    agent = fake_agent_factory("echo", ("echo",))
    registry.register(agent)
    workflow = Workflow(
        id="wf-deps",
        name="deps",
        steps=[
            _step("b", depends_on=["a"], parameters={"id": "b"}),
            _step("a", parameters={"id": "a"}),
        ],
    )

    result = WorkflowOrchestrator(registry).run_workflow(workflow)

    assert result.status == WorkflowStatus.COMPLETED
    assert [step.step_id for step in result.steps] == ["b", "a"]
    assert [task.payload["id"] for task in agent.executed] == ["b", "a"]


def test_vm_create_then_start_workflow(registry: AgentRegistry, fake_agent_factory) -> None:
    vm = fake_agent_factory("proxmox", ("vm", "container", "infrastructure"), output="ok")
    registry.register(vm)
    workflow = Workflow(
        id="wf-vm",
        name="vm",
        steps=[
            WorkflowStep(id="A", name="create", task_type="vm", parameters={"action": "create"}),
            WorkflowStep(
                id="B",
                name="start",
                task_type="vm",
                parameters={"action": "start"},
                depends_on=["A"],
            ),
        ],
    )

    result = WorkflowOrchestrator(registry).run_workflow(workflow)

    assert result.status == WorkflowStatus.COMPLETED
    assert [(step.step_id, step.status) for step in result.steps] == [
        ("A", StepStatus.COMPLETED),
        ("B", StepStatus.COMPLETED),
    ]
    assert [task.payload["action"] for task in vm.executed] == ["create", "start"]


def test_empty_workflow_completes(registry: AgentRegistry) -> None:
    result = WorkflowOrchestrator(registry).run_workflow(Workflow(id="empty", name="empty"))

    assert result.status == WorkflowStatus.COMPLETED
    assert result.steps == []


def test_execute_task_marks_task_and_propagates_errors(registry: AgentRegistry) -> None:
    registry.register(EchoAgent())
    orchestrator = WorkflowOrchestrator(registry)

    ok = Task(category="echo", payload={"a": 1})
    result = orchestrator.execute_task(ok)
    assert result.output == {"a": 1}
    assert ok.status == TaskStatus.DONE

    missing = Task(category="nix")
    with pytest.raises(NoCapableAgentError):
        orchestrator.execute_task(missing)
    assert missing.status == TaskStatus.FAILED


def test_cancel_token_reaches_provider(registry: AgentRegistry) -> None:
    received: list[threading.Event] = []

    class _Recorder:
        name = "recorder"

        def supports(self, category: str) -> bool:
            return True

        def execute(self, task, cancel):
            received.append(cancel)
            return None

    registry.register(_Recorder())
    cancel = threading.Event()
    workflow = Workflow(id="wf-cancel", name="cancel", steps=[_step("s1"), _step("s2")])

    result = WorkflowOrchestrator(registry).run_workflow(workflow, cancel)

    assert result.status == WorkflowStatus.COMPLETED
    assert received == [cancel, cancel]


def test_provider_returning_wrong_type_aborts_workflow(registry: AgentRegistry) -> None:
    class _DictReturning:
        name = "raw"

        def supports(self, category: str) -> bool:
            return category == "raw"

        def execute(self, task, cancel):
            return {"output": "not a result"}

    registry.register(_DictReturning())
    registry.register(EchoAgent())
    workflow = Workflow(
        id="wf-type",
        name="bad return",
        steps=[_step("s1", task_type="raw", continue_on_error=True), _step("s2")],
    )

    result = WorkflowOrchestrator(registry).run_workflow(workflow)

    assert result.status == WorkflowStatus.FAILED
    assert [step.step_id for step in result.steps] == ["s1"]
    assert result.steps[0].status == StepStatus.FAILED
    assert "expected TaskResult" in result.steps[0].error
    assert result.error.startswith("workflow step 1 failed: ")
