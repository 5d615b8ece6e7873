"""Provider protocol and built-in providers."""

from agentic.orchestrator.backend.base import CapabilityProvider, checked_result
from agentic.orchestrator.backend.echo_agent import ECHO_CATEGORY, EchoAgent

__all__ = [
    "ECHO_CATEGORY",
    "CapabilityProvider",
    "EchoAgent",
    "checked_result",
]
