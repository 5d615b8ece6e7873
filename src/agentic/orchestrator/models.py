"""Domain models for tasks, workflows and their results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class TaskStatus(str, Enum):
    """In-memory task lifecycle states."""

    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


_TERMINAL_STATUSES = frozenset({TaskStatus.DONE, TaskStatus.FAILED})
_ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.QUEUED: frozenset({TaskStatus.RUNNING, TaskStatus.FAILED}),
    TaskStatus.RUNNING: _TERMINAL_STATUSES,
    TaskStatus.DONE: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


class WorkflowStatus(str, Enum):
    """Aggregate workflow outcome."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class StepStatus(str, Enum):
    """Per-step outcome inside a workflow run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class TaskResult:
    """Outcome of one task execution.

    ``output`` is meaningful only when ``error`` is ``None``. Providers report
    application-level failures by returning a result with ``error`` set rather
    than raising.
    """

    output: Any = None
    error: BaseException | str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> str | None:
        if self.error is None:
            return None
        return str(self.error)

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"output": None, "error": self.error_message}
        return {"output": self.output, "error": None}


@dataclass(slots=True)
class Task:
    """Unit of work dispatched to the first provider supporting ``category``.

    Status moves forward only: ``queued -> running -> done|failed``. A task
    that never reaches a provider goes straight from ``queued`` to ``failed``.
    The owning scheduler or orchestrator is the only writer.
    """

    category: str
    payload: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: f"task-{uuid4().hex[:16]}")
    status: TaskStatus = TaskStatus.QUEUED
    result: TaskResult | None = None
    provider: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in _TERMINAL_STATUSES

    def mark_running(self, provider: str) -> None:
        self._transition(TaskStatus.RUNNING)
        self.provider = provider
        self.started_at = utc_now()

    def mark_done(self, result: TaskResult) -> None:
        self._finish(TaskStatus.DONE, result)

    def mark_failed(self, result: TaskResult) -> None:
        self._finish(TaskStatus.FAILED, result)

    def _finish(self, status: TaskStatus, result: TaskResult) -> None:
        if self.result is not None:
            raise RuntimeError(f"Task {self.id} already has a result.")
        self._transition(status)
        self.result = result
        self.finished_at = utc_now()

    def _transition(self, target: TaskStatus) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise RuntimeError(
                f"Invalid task status transition for {self.id}: "
                f"{self.status.value} -> {target.value}",
            )
        self.status = target

    def to_dict(self) -> dict[str, Any]:
        """Serialize for status readers."""

        return {
            "id": self.id,
            "category": self.category,
            "payload": self.payload,
            "status": self.status.value,
            "provider": self.provider,
            "result": self.result.to_dict() if self.result is not None else None,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


@dataclass(slots=True)
class WorkflowStep:
    """One step of a workflow; becomes a ``Task`` when executed.

    ``depends_on`` is informational. Steps always run in list order.
    """

    id: str
    name: str
    task_type: str
    parameters: dict[str, Any] = field(default_factory=dict)
    depends_on: list[str] = field(default_factory=list)
    continue_on_error: bool = False

    def to_task(self) -> Task:
        return Task(category=self.task_type, payload=self.parameters)


@dataclass(slots=True)
class Workflow:
    """Named, ordered sequence of steps."""

    id: str
    name: str
    description: str = ""
    steps: list[WorkflowStep] = field(default_factory=list)


@dataclass(slots=True)
class StepResult:
    """Outcome of one executed step."""

    step_id: str
    name: str
    order: int
    status: StepStatus = StepStatus.PENDING
    output: Any = None
    error: str | None = None


@dataclass(slots=True)
class WorkflowResult:
    """Aggregated outcome; ``steps`` holds only the steps that were attempted."""

    workflow_id: str
    status: WorkflowStatus = WorkflowStatus.RUNNING
    steps: list[StepResult] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == WorkflowStatus.COMPLETED


@dataclass(slots=True)
class ConnectorInfo:
    """Registry view of one registered provider."""

    name: str
    type: str
    status: str
    supported_tasks: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "status": self.status,
            "supported_tasks": list(self.supported_tasks),
        }
