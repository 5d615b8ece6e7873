"""Runtime configuration for the scheduler and connector registration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field


DOCKER_ENGINES = frozenset({"docker", "podman"})
KUBERNETES_ENGINES = frozenset({"kubectl", "microk8s", "k3s", "talosctl"})


@dataclass(slots=True)
class SchedulerSettings:
    """Worker pool and queue sizing."""

    queue_capacity: int = 100
    workers: int = 4
    stop_timeout_seconds: float = 30.0


@dataclass(slots=True)
class ConnectorSettings:
    """Backend configuration; a backend is registered only when configured.

    Only presence matters here. The connectors themselves read the rest of
    their configuration.
    """

    huggingface_api_key: str = ""
    io_intelligence_api_key: str = ""
    opencode_api_key: str = ""
    opencode_endpoint: str = ""
    agentzero_endpoint: str = ""
    proxmox_url: str = ""
    docker_engine: str = "docker"
    kubernetes_engine: str = "kubectl"
    echo_enabled: bool = True

    def configured_connectors(self) -> list[str]:
        """Connector names to register, in registration order."""

        names: list[str] = []
        if self.echo_enabled:
            names.append("echo")
        if self.huggingface_api_key:
            names.append("huggingface")
        if self.io_intelligence_api_key:
            names.append("io_intelligence")
        if self.opencode_api_key or self.opencode_endpoint:
            names.append("opencode")
        if self.agentzero_endpoint:
            names.append("agent-zero")
        if self.proxmox_url:
            names.append("proxmox")
        names.extend(("docker", "kubernetes", "nix", "gpu"))
        return names


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    scheduler: SchedulerSettings = field(default_factory=SchedulerSettings)
    connectors: ConnectorSettings = field(default_factory=ConnectorSettings)
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults for local development."""

        return cls(
            scheduler=SchedulerSettings(
                queue_capacity=_env_int("AGENTIC_QUEUE_CAPACITY", 100),
                workers=_env_int("AGENTIC_WORKERS", 4),
                stop_timeout_seconds=_env_float("AGENTIC_STOP_TIMEOUT_SECONDS", 30.0),
            ),
            connectors=ConnectorSettings(
                huggingface_api_key=os.getenv("HUGGINGFACE_API_KEY", "").strip(),
                io_intelligence_api_key=os.getenv("IO_INTELLIGENCE_API_KEY", "").strip(),
                opencode_api_key=os.getenv("OPENCODE_API_KEY", "").strip(),
                opencode_endpoint=os.getenv("OPENCODE_ENDPOINT", "").strip(),
                agentzero_endpoint=os.getenv("AGENTZERO_ENDPOINT", "").strip(),
                proxmox_url=os.getenv("PROXMOX_URL", "").strip(),
                docker_engine=os.getenv("AGENTIC_DOCKER_ENGINE", "docker").strip() or "docker",
                kubernetes_engine=(
                    os.getenv("AGENTIC_KUBERNETES_ENGINE", "kubectl").strip() or "kubectl"
                ),
                echo_enabled=_env_bool("AGENTIC_ECHO_AGENT", default=True),
            ),
            log_level=os.getenv("AGENTIC_LOG_LEVEL", "WARNING").strip().upper() or "WARNING",
        )

    def validate(self) -> None:
        """Raise configuration error for values the scheduler cannot use."""

        if self.scheduler.queue_capacity <= 0:
            raise ValueError("AGENTIC_QUEUE_CAPACITY must be a positive integer.")
        if self.scheduler.workers <= 0:
            raise ValueError("AGENTIC_WORKERS must be a positive integer.")
        if self.scheduler.stop_timeout_seconds <= 0:
            raise ValueError("AGENTIC_STOP_TIMEOUT_SECONDS must be > 0.")
        if self.connectors.docker_engine not in DOCKER_ENGINES:
            raise ValueError(
                f"Unsupported AGENTIC_DOCKER_ENGINE: {self.connectors.docker_engine!r}. "
                "Use docker or podman.",
            )
        if self.connectors.kubernetes_engine not in KUBERNETES_ENGINES:
            raise ValueError(
                f"Unsupported AGENTIC_KUBERNETES_ENGINE: {self.connectors.kubernetes_engine!r}. "
                f"Use one of: {', '.join(sorted(KUBERNETES_ENGINES))}.",
            )
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unsupported AGENTIC_LOG_LEVEL: {self.log_level!r}.")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError as error:
        raise ValueError(f"Invalid number for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
