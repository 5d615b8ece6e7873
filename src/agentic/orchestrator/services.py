"""Use-case facade wiring registry, scheduler and workflow orchestrator."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

from agentic.config import ConnectorSettings, Settings
from agentic.orchestrator.backend import CapabilityProvider, EchoAgent
from agentic.orchestrator.models import ConnectorInfo, Task, Workflow, WorkflowResult
from agentic.orchestrator.registry import AgentRegistry
from agentic.orchestrator.scheduler import Scheduler
from agentic.orchestrator.workflow import WorkflowOrchestrator

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ConnectorSettings], CapabilityProvider]

DEFAULT_PROVIDER_FACTORIES: dict[str, ProviderFactory] = {
    "echo": lambda _settings: EchoAgent(),
}


class OrchestratorService:
    """Owns one registry shared by a scheduler and a workflow orchestrator.

    Each service instance is independent; nothing is kept in module state, so
    several services can live in one process.

    Submitted task handles are kept until the caller releases them with
    ``forget`` or ``forget_finished`` after reading the final status.
    """

    def __init__(
        self,
        *,
        registry: AgentRegistry | None = None,
        queue_capacity: int = 100,
        stop_timeout_seconds: float | None = None,
    ) -> None:
        self.registry = registry or AgentRegistry()
        self.stop_timeout_seconds = stop_timeout_seconds
        self.scheduler = Scheduler(self.registry, queue_capacity)
        self.orchestrator = WorkflowOrchestrator(self.registry)
        self._tasks: dict[str, Task] = {}
        self._tasks_lock = threading.Lock()

    def register_provider(self, provider: CapabilityProvider) -> None:
        self.registry.register(provider)

    def list_connectors(self) -> list[ConnectorInfo]:
        return self.registry.describe()

    def start(self, workers: int) -> None:
        self.scheduler.run(workers)

    def stop(self, *, drain: bool = True) -> None:
        self.scheduler.stop(drain=drain, timeout=self.stop_timeout_seconds)

    def submit_task(
        self,
        category: str,
        payload: Mapping[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Task:
        """Queue a new task and return it as a pollable handle.

        Blocks while the scheduler queue is full (see ``Scheduler.schedule``).
        """

        task = Task(category=category, payload=dict(payload or {}))
        with self._tasks_lock:
            self._tasks[task.id] = task
        try:
            self.scheduler.schedule(task, timeout=timeout)
        except Exception:
            with self._tasks_lock:
                self._tasks.pop(task.id, None)
            raise
        return task

    def get_task(self, task_id: str) -> Task | None:
        with self._tasks_lock:
            return self._tasks.get(task_id)

    def list_tasks(self) -> list[Task]:
        with self._tasks_lock:
            return list(self._tasks.values())

    def forget(self, task_id: str) -> Task | None:
        """Drop a finished task handle and return it.

        Queued and running tasks stay tracked; ``None`` is returned for them and
        for unknown ids.
        """

        with self._tasks_lock:
            task = self._tasks.get(task_id)
            if task is None or not task.is_terminal:
                return None
            return self._tasks.pop(task_id)

    def forget_finished(self) -> list[Task]:
        """Drop every finished task handle; returns the dropped tasks."""

        with self._tasks_lock:
            finished = [task for task in self._tasks.values() if task.is_terminal]
            for task in finished:
                del self._tasks[task.id]
        return finished

    def run_workflow(
        self,
        workflow: Workflow,
        cancel: threading.Event | None = None,
    ) -> WorkflowResult:
        """Run ``workflow`` inline on the calling thread and wait for it to finish."""

        return self.orchestrator.run_workflow(workflow, cancel)

    def __enter__(self) -> OrchestratorService:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.stop()


def build_service(
    settings: Settings,
    factories: Mapping[str, ProviderFactory] | None = None,
) -> OrchestratorService:
    """Create a service and register a provider for every configured connector.

    Connectors without a factory in ``factories`` are skipped.
    """

    settings.validate()
    available = dict(DEFAULT_PROVIDER_FACTORIES)
    if factories:
        available.update(factories)

    service = OrchestratorService(
        queue_capacity=settings.scheduler.queue_capacity,
        stop_timeout_seconds=settings.scheduler.stop_timeout_seconds,
    )
    for name in settings.connectors.configured_connectors():
        factory = available.get(name)
        if factory is None:
            logger.debug("No provider factory for connector %s; skipped", name)
            continue
        service.register_provider(factory(settings.connectors))
    return service
