"""Builders for infrastructure provisioning workflows."""

from __future__ import annotations

from dataclasses import dataclass, field

from agentic.orchestrator.models import Workflow, WorkflowStep

CREATE_VM_STEP_ID = "create-vm"
START_VM_STEP_ID = "start-vm"


@dataclass(slots=True)
class ContainerSpec:
    """Container to deploy after the VM is up."""

    name: str
    image: str
    ports: list[str] = field(default_factory=list)
    volumes: list[str] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ManifestSpec:
    """Kubernetes manifest to apply."""

    name: str
    yaml: str
    namespace: str = ""


@dataclass(slots=True)
class ProvisioningConfig:
    """Declarative input for ``create_provisioning_workflow``."""

    name: str
    vmid: int = 0
    cpu: int = 0
    memory: int = 0
    use_proxmox: bool = False
    proxmox_node: str = ""
    containers: list[ContainerSpec] = field(default_factory=list)
    kubernetes_manifests: list[ManifestSpec] = field(default_factory=list)


def create_provisioning_workflow(config: ProvisioningConfig) -> Workflow:
    """Build the step list for a VM + containers + manifests rollout.

    VM steps are included only with ``use_proxmox``; container deploys depend
    on ``start-vm`` only in that case. Manifest steps declare no dependencies.
    """

    steps: list[WorkflowStep] = []

    if config.use_proxmox:
        steps.append(
            WorkflowStep(
                id=CREATE_VM_STEP_ID,
                name="Create Virtual Machine",
                task_type="vm",
                parameters={
                    "action": "create",
                    "vm_type": "qemu",
                    "node": config.proxmox_node,
                    "config": {
                        "cores": config.cpu,
                        "memory": config.memory,
                        "scsihw": "virtio-scsi-pci",
                        "net0": "virtio,bridge=vmbr0",
                    },
                },
            ),
        )
        steps.append(
            WorkflowStep(
                id=START_VM_STEP_ID,
                name="Start Virtual Machine",
                task_type="vm",
                depends_on=[CREATE_VM_STEP_ID],
                parameters={
                    "action": "start",
                    "vm_type": "qemu",
                    "node": config.proxmox_node,
                    "vmid": config.vmid,
                },
            ),
        )

    for index, container in enumerate(config.containers, start=1):
        steps.append(
            WorkflowStep(
                id=f"deploy-container-{index}",
                name=f"Deploy Container: {container.name}",
                task_type="container",
                depends_on=[START_VM_STEP_ID] if config.use_proxmox else [],
                parameters={
                    "action": "run",
                    "image": container.image,
                    "name": container.name,
                    "ports": list(container.ports),
                    "volumes": list(container.volumes),
                    "env": dict(container.environment),
                    "detach": True,
                },
            ),
        )

    for index, manifest in enumerate(config.kubernetes_manifests, start=1):
        steps.append(
            WorkflowStep(
                id=f"deploy-k8s-{index}",
                name=f"Deploy K8s: {manifest.name}",
                task_type="kubernetes",
                parameters={
                    "action": "apply",
                    "manifest": manifest.yaml,
                    "namespace": manifest.namespace,
                },
            ),
        )

    return Workflow(
        id=f"vm-provision-{config.name}",
        name=f"Provision VM: {config.name}",
        description="Complete VM provisioning workflow with container setup",
        steps=steps,
    )
