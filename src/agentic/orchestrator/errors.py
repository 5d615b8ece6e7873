"""Error types raised by the orchestration core."""

from __future__ import annotations


class OrchestratorError(RuntimeError):
    """Base class for orchestration errors."""


class NoCapableAgentError(OrchestratorError):
    """No registered provider supports the requested task category."""

    def __init__(self, category: str) -> None:
        super().__init__(f"no agent supports task type: {category}")
        self.category = category


class SchedulerClosedError(OrchestratorError):
    """Task submitted to a scheduler that has been stopped."""


class ProviderExecutionError(OrchestratorError):
    """Transport or backend failure raised by a provider's ``execute``."""

    def __init__(self, message: str, *, provider: str) -> None:
        super().__init__(message)
        self.provider = provider
