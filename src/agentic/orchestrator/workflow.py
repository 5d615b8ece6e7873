"""Sequential workflow execution on top of the agent registry."""

from __future__ import annotations

import logging
import threading

from agentic.orchestrator.backend.base import checked_result
from agentic.orchestrator.models import (
    StepResult,
    StepStatus,
    Task,
    TaskResult,
    Workflow,
    WorkflowResult,
    WorkflowStatus,
)
from agentic.orchestrator.registry import AgentRegistry

logger = logging.getLogger(__name__)


class WorkflowOrchestrator:
    """Runs workflow steps inline, one after another, on the caller's thread.

    Steps never go through the scheduler queue. There are two failure paths:

    * a step whose category has no provider, or whose provider raises, always
      aborts the workflow, whatever ``continue_on_error`` says;
    * a step whose provider returns a result carrying an error is recorded as
      ``completed`` with that error, and aborts the workflow only when
      ``continue_on_error`` is false.

    Steps after the abort point are absent from the result.
    """

    def __init__(self, registry: AgentRegistry) -> None:
        self.registry = registry

    def execute_task(self, task: Task, cancel: threading.Event | None = None) -> TaskResult:
        """Resolve a provider for ``task`` and execute it synchronously.

        Raises:
            NoCapableAgentError: when no provider supports the category.
            TypeError: when the provider returns something other than a
                ``TaskResult``.
            Exception: whatever the provider's ``execute`` raises.
        """

        try:
            provider = self.registry.select(task.category)
        except Exception as error:
            task.mark_failed(TaskResult(error=error))
            raise
        task.mark_running(provider.name)
        try:
            result = checked_result(provider, provider.execute(task, cancel or threading.Event()))
        except Exception as error:
            task.mark_failed(TaskResult(error=error))
            raise
        task.mark_done(result)
        return result

    def run_workflow(
        self,
        workflow: Workflow,
        cancel: threading.Event | None = None,
    ) -> WorkflowResult:
        """Execute ``workflow`` and return the aggregated result.

        ``depends_on`` is not consulted; list order is execution order.
        Step failures are reported through the returned result, never raised.
        """

        result = WorkflowResult(workflow_id=workflow.id)
        logger.info("Workflow %s started (%d steps)", workflow.id, len(workflow.steps))

        for index, step in enumerate(workflow.steps):
            order = index + 1
            step_result = StepResult(
                step_id=step.id,
                name=step.name,
                order=order,
                status=StepStatus.RUNNING,
            )
            try:
                task_result = self.execute_task(step.to_task(), cancel)
            except Exception as error:  # noqa: BLE001
                step_result.status = StepStatus.FAILED
                step_result.error = str(error)
                result.steps.append(step_result)
                return self._abort(result, f"workflow step {order} failed: {error}")

            step_result.status = StepStatus.COMPLETED
            step_result.output = task_result.output
            step_result.error = task_result.error_message
            result.steps.append(step_result)

            if task_result.error is not None and not step.continue_on_error:
                return self._abort(
                    result,
                    f"workflow step {order} had error: {task_result.error_message}",
                )

        result.status = WorkflowStatus.COMPLETED
        logger.info("Workflow %s completed", workflow.id)
        return result

    @staticmethod
    def _abort(result: WorkflowResult, message: str) -> WorkflowResult:
        result.status = WorkflowStatus.FAILED
        result.error = message
        logger.info("Workflow %s failed: %s", result.workflow_id, message)
        return result
