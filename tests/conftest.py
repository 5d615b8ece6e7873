"""Shared test fixtures and fake providers."""

from __future__ import annotations

import threading
from collections.abc import Callable

import pytest

from agentic.orchestrator.models import Task, TaskResult
from agentic.orchestrator.registry import AgentRegistry


class FakeAgent:
    """Configurable in-memory provider that records every executed task."""

    def __init__(  # noqa: PLR0913
        self,
        name: str,
        categories: tuple[str, ...],
        *,
        output: object = None,
        error: str | None = None,
        raises: Exception | None = None,
        gate: threading.Event | None = None,
        on_execute: Callable[[Task], None] | None = None,
    ) -> None:
        self._name = name
        self.categories = categories
        self.output = output
        self.error = error
        self.raises = raises
        self.gate = gate
        self.on_execute = on_execute
        self.executed: list[Task] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    def supports(self, category: str) -> bool:
        return category in self.categories

    def execute(self, task: Task, cancel: threading.Event) -> TaskResult:  # noqa: ARG002
        with self._lock:
            self.executed.append(task)
        if self.on_execute is not None:
            self.on_execute(task)
        if self.gate is not None and not self.gate.wait(timeout=5):
            raise TimeoutError("gate was never opened")
        if self.raises is not None:
            raise self.raises
        if self.error is not None:
            return TaskResult(error=self.error)
        return TaskResult(output=self.output if self.output is not None else dict(task.payload))


@pytest.fixture()
def registry() -> AgentRegistry:
    return AgentRegistry()


@pytest.fixture()
def fake_agent_factory() -> Callable[..., FakeAgent]:
    return FakeAgent
