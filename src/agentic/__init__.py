"""Agent-based task orchestration: registry, scheduler and workflow runner."""

__version__ = "0.1.0"
