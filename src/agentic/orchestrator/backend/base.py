"""Provider interface for task execution backends."""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

from agentic.orchestrator.models import Task, TaskResult


@runtime_checkable
class CapabilityProvider(Protocol):
    """Protocol implemented by every backend registered with the registry.

    ``supports`` must be a pure predicate safe to call from many threads.
    ``execute`` may block and may raise; it must tolerate running concurrently
    with other providers but need not be reentrant with itself. Long-running
    providers should poll ``cancel`` and return early once it is set.
    """

    @property
    def name(self) -> str:
        """Stable provider identity."""

    def supports(self, category: str) -> bool:
        """Return whether tasks of ``category`` can be handled."""

    def execute(self, task: Task, cancel: threading.Event) -> TaskResult:
        """Run a task and return its result."""


def checked_result(provider: CapabilityProvider, result: object) -> TaskResult:
    """Normalize the return value of ``execute``; ``None`` means an empty result.

    Raises:
        TypeError: when the provider returned anything else than a ``TaskResult``.
    """

    if result is None:
        return TaskResult()
    if not isinstance(result, TaskResult):
        raise TypeError(
            f"Provider {provider.name} returned {type(result).__name__}, expected TaskResult.",
        )
    return result
