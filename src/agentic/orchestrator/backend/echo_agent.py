"""Local echo provider for CLI smoke runs and tests."""

from __future__ import annotations

import threading

from agentic.orchestrator.models import Task, TaskResult

ECHO_CATEGORY = "echo"


class EchoAgent:
    """Return the task payload unchanged.

    A payload carrying an ``"error"`` key yields a result with that message
    as a soft error, which lets workflows exercise ``continue_on_error``.
    """

    def __init__(self, name: str = "echo", categories: tuple[str, ...] = (ECHO_CATEGORY,)) -> None:
        self._name = name
        self._categories = frozenset(category.strip().lower() for category in categories)

    @property
    def name(self) -> str:
        return self._name

    def supports(self, category: str) -> bool:
        return category.strip().lower() in self._categories

    def execute(self, task: Task, cancel: threading.Event) -> TaskResult:  # noqa: ARG002
        error = task.payload.get("error")
        if error:
            return TaskResult(error=str(error))
        return TaskResult(output=dict(task.payload))
