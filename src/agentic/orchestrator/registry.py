"""Ordered provider registry with first-match capability resolution."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from agentic.orchestrator.backend.base import CapabilityProvider
from agentic.orchestrator.errors import NoCapableAgentError
from agentic.orchestrator.models import ConnectorInfo

logger = logging.getLogger(__name__)

LLM_CONNECTORS = ("huggingface", "io_intelligence")
INFRASTRUCTURE_CONNECTORS = ("proxmox", "docker", "kubernetes", "nix", "gpu")
PROBE_TASK_TYPES = (
    "llm",
    "embedding",
    "vm",
    "container",
    "infrastructure",
    "kubernetes",
    "k8s",
    "cluster",
    "docker",
    "podman",
    "nix",
    "nixos",
    "flake",
    "reproducible",
    "gpu",
    "nvidia",
    "cuda",
    "hardware",
)


class _ReadWriteLock:
    """Many concurrent readers or one writer; waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer_active or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True
        try:
            yield
        finally:
            with self._cond:
                self._writer_active = False
                self._cond.notify_all()


class AgentRegistry:
    """Holds providers in registration order and resolves categories to them.

    Resolution is a linear scan and the first provider whose ``supports``
    returns true wins, so registering a specialised provider before a generic
    one gives it precedence. Registering the same identity twice creates two
    independent entries.
    """

    def __init__(self) -> None:
        self._providers: list[CapabilityProvider] = []
        self._lock = _ReadWriteLock()

    def register(self, provider: CapabilityProvider) -> None:
        """Append a provider; it is consulted after all earlier registrations."""

        with self._lock.write():
            self._providers.append(provider)
        logger.info("Registered provider %s", provider.name)

    def select(self, category: str) -> CapabilityProvider:
        """Return the first provider supporting ``category``.

        Raises:
            NoCapableAgentError: when no registered provider matches.
        """

        with self._lock.read():
            for provider in self._providers:
                if provider.supports(category):
                    return provider
        raise NoCapableAgentError(category)

    def providers(self) -> list[CapabilityProvider]:
        """Snapshot of registered providers in registration order."""

        with self._lock.read():
            return list(self._providers)

    def describe(self) -> list[ConnectorInfo]:
        """Connector summaries for every registered provider."""

        return [
            ConnectorInfo(
                name=provider.name,
                type=connector_type(provider.name),
                status="available",
                supported_tasks=supported_task_types(provider),
            )
            for provider in self.providers()
        ]

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._providers)


def connector_type(name: str) -> str:
    if name in LLM_CONNECTORS:
        return "llm"
    if name in INFRASTRUCTURE_CONNECTORS:
        return "infrastructure"
    return "unknown"


def supported_task_types(provider: CapabilityProvider) -> list[str]:
    return [task_type for task_type in PROBE_TASK_TYPES if provider.supports(task_type)]
