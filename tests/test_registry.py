from __future__ import annotations

import threading

import allure
import pytest

from agentic.orchestrator.backend import CapabilityProvider, EchoAgent
from agentic.orchestrator.errors import NoCapableAgentError
from agentic.orchestrator.registry import AgentRegistry, connector_type

pytestmark = [
    allure.epic("Orchestration Core"),
    allure.feature("Agent Registry"),
]


def test_select_returns_first_registered_match(registry: AgentRegistry, fake_agent_factory) -> None:
    generic = fake_agent_factory("generic", ("vm", "container"))
    specific = fake_agent_factory("specific", ("vm",))
    registry.register(generic)
    registry.register(specific)

    assert registry.select("vm") is generic
    assert registry.select("container") is generic


def test_specialised_provider_registered_first_takes_precedence(
    registry: AgentRegistry,
    fake_agent_factory,
) -> None:
    specific = fake_agent_factory("specific", ("vm",))
    generic = fake_agent_factory("generic", ("vm", "container"))
    registry.register(specific)
    registry.register(generic)

    assert registry.select("vm") is specific
    assert registry.select("container") is generic


def test_select_miss_raises_no_capable_agent(registry: AgentRegistry) -> None:
    registry.register(EchoAgent())

    with pytest.raises(NoCapableAgentError) as excinfo:
        registry.select("gpu")

    assert excinfo.value.category == "gpu"
    assert "no agent supports task type: gpu" in str(excinfo.value)


def test_select_on_empty_registry_raises(registry: AgentRegistry) -> None:
    with pytest.raises(NoCapableAgentError):
        registry.select("echo")


def test_duplicate_identity_creates_independent_entries(registry: AgentRegistry) -> None:
    first = EchoAgent()
    second = EchoAgent()
    registry.register(first)
    registry.register(second)

    assert len(registry) == 2
    assert registry.providers() == [first, second]
    assert registry.select("echo") is first


def test_first_match_holds_under_concurrent_selects(
    registry: AgentRegistry,
    fake_agent_factory,
) -> None:
    first = fake_agent_factory("first", ("llm",))
    registry.register(first)
    registry.register(fake_agent_factory("second", ("llm",)))

    selected: list[object] = []
    lock = threading.Lock()
    start = threading.Barrier(8)

    def _select_many() -> None:
        start.wait(timeout=5)
        for _ in range(200):
            provider = registry.select("llm")
            with lock:
                selected.append(provider)

    threads = [threading.Thread(target=_select_many) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert len(selected) == 8 * 200
    assert all(provider is first for provider in selected)


def test_register_waits_for_in_flight_select(registry: AgentRegistry, fake_agent_factory) -> None:
    entered = threading.Event()
    release = threading.Event()

    class _SlowSupports:
        name = "slow"

        def supports(self, category: str) -> bool:
            entered.set()
            release.wait(timeout=5)
            return category == "slow"

        def execute(self, task, cancel):  # pragma: no cover - never executed
            raise AssertionError

    registry.register(_SlowSupports())
    selector = threading.Thread(target=registry.select, args=("slow",))
    selector.start()
    assert entered.wait(timeout=5)

    registered = threading.Event()

    def _register() -> None:
        registry.register(fake_agent_factory("late", ("late",)))
        registered.set()

    writer = threading.Thread(target=_register)
    writer.start()
    assert not registered.wait(timeout=0.2)

    release.set()
    selector.join(timeout=5)
    writer.join(timeout=5)
    assert registered.is_set()
    assert len(registry) == 2


def test_describe_reports_connector_type_and_probed_tasks(
    registry: AgentRegistry,
    fake_agent_factory,
) -> None:
    registry.register(fake_agent_factory("huggingface", ("llm", "embedding")))
    registry.register(fake_agent_factory("docker", ("container", "docker", "podman")))
    registry.register(EchoAgent())

    described = [info.to_dict() for info in registry.describe()]

    assert described == [
        {
            "name": "huggingface",
            "type": "llm",
            "status": "available",
            "supported_tasks": ["llm", "embedding"],
        },
        {
            "name": "docker",
            "type": "infrastructure",
            "status": "available",
            "supported_tasks": ["container", "docker", "podman"],
        },
        {"name": "echo", "type": "unknown", "status": "available", "supported_tasks": []},
    ]


def test_connector_type_classification() -> None:
    assert connector_type("io_intelligence") == "llm"
    assert connector_type("proxmox") == "infrastructure"
    assert connector_type("gpu") == "infrastructure"
    assert connector_type("opencode") == "unknown"


def test_echo_agent_satisfies_provider_protocol() -> None:
    assert isinstance(EchoAgent(), CapabilityProvider)
