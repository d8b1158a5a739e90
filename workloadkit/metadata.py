"""Common workload metadata, the cluster client interface and shared helpers."""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

log = logging.getLogger(__name__)

Labels = dict[str, str]
OwnerReferences = Optional[list[dict[str, Any]]]

WORKLOAD_TYPE_LABEL = "oam.dev/workload-type"
INSTANCE_NAME_LABEL = "oam.dev/instance-name"
APP_NAME_LABEL = "app.kubernetes.io/name"


class Phase(enum.Enum):
    """The lifecycle step a request performs.

    Any unrecognised phase name is treated as ``ADD``.
    """

    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"

    @classmethod
    def _missing_(cls, value: object) -> Phase | None:
        if isinstance(value, str):
            return cls.ADD
        return None


class WorkloadError(Exception):
    """Raised when a workload operation or validation fails."""


@runtime_checkable
class KubeClient(Protocol):
    """The cluster operations a workload needs.

    Implementations raise :class:`WorkloadError` when a request fails.
    """

    def create(self, kind: str, namespace: str, body: dict[str, Any]) -> Any:
        """Create an object of ``kind`` in ``namespace``."""

    def patch(self, kind: str, namespace: str, name: str, body: Any) -> Any:
        """Patch the named object of ``kind`` in ``namespace``."""

    def delete(self, kind: str, namespace: str, name: str) -> Any:
        """Delete the named object of ``kind`` in ``namespace``."""

    def get_status(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Return the named object, including its ``status`` section."""


def form_metadata(
    name: str,
    labels: Mapping[str, str],
    owner_references: OwnerReferences,
) -> dict[str, Any]:
    """Build object metadata with a name, labels and optional owner references."""
    metadata: dict[str, Any] = {"name": name, "labels": dict(labels)}
    if owner_references is not None:
        metadata["ownerReferences"] = [dict(ref) for ref in owner_references]
    return metadata


def to_config_maps(
    configs: Mapping[str, Mapping[str, str]],
    owner_ref: OwnerReferences,
    labels: Optional[Mapping[str, str]],
) -> list[dict[str, Any]]:
    """Turn a mapping of config-map name to data into config-map objects, ordered by name."""
    config_maps = []
    for key in sorted(configs):
        metadata: dict[str, Any] = {"name": key}
        if owner_ref is not None:
            metadata["ownerReferences"] = [dict(ref) for ref in owner_ref]
        if labels is not None:
            metadata["labels"] = dict(labels)
        config_maps.append({"metadata": metadata, "data": dict(configs[key])})
    return config_maps


@dataclass
class WorkloadMetadata:
    """Data shared by every workload type.

    ``definition`` is the component definition; it must provide
    ``evaluate_configs(params)`` returning a mapping of config-map names to data.
    """

    name: str
    component_name: str
    instance_name: str
    namespace: str
    definition: Any
    client: KubeClient
    params: dict[str, Any] = field(default_factory=dict)
    owner_ref: OwnerReferences = None
    annotations: Optional[Labels] = None

    def labels(self, workload_type: str) -> Labels:
        """Labels identifying this workload and its type."""
        return {
            APP_NAME_LABEL: self.name,
            WORKLOAD_TYPE_LABEL: workload_type,
            INSTANCE_NAME_LABEL: self.instance_name,
        }

    def select_labels(self) -> Labels:
        """Labels used to select the pods of this workload."""
        return {
            APP_NAME_LABEL: self.name,
            INSTANCE_NAME_LABEL: self.instance_name,
        }

    def kube_name(self) -> str:
        return self.instance_name

    def to_config_maps(self, workload_type: str) -> list[dict[str, Any]]:
        configs = self.definition.evaluate_configs(dict(self.params))
        return to_config_maps(configs, self.owner_ref, self.labels(workload_type))

    def create_config_maps(self, workload_type: str) -> None:
        """Create every config map the component declares."""
        config_maps = self.to_config_maps(workload_type)
        if config_maps:
            log.debug("start to create %d config_maps", len(config_maps))
        for config_map in config_maps:
            self.client.create("ConfigMap", self.namespace, config_map)

    def deployment_status(self) -> str:
        """Summarise the deployment as running, updating or unavailable.

        A failed lookup yields the error text rather than raising.
        """
        try:
            deployment = self.client.get_status("Deployment", self.namespace, self.kube_name())
        except WorkloadError as exc:
            return str(exc)
        status = deployment.get("status")
        if status is None:
            raise WorkloadError(f"deployment {self.kube_name()} has no status")
        replicas = status.get("replicas") or 0
        available = status.get("availableReplicas") or 0
        unavailable = status.get("unavailableReplicas") or 0
        if available == replicas:
            return "running"
        if unavailable > 0:
            return "unavailable"
        return "updating"


class WorkloadType(ABC):
    """A workload that can be added, modified, deleted and inspected."""

    meta: WorkloadMetadata

    def kube_name(self) -> str:
        return self.meta.kube_name()

    @abstractmethod
    def add(self) -> None:
        """Create the workload's resources."""

    @abstractmethod
    def modify(self) -> None:
        """Update the workload's resources."""

    @abstractmethod
    def delete(self) -> None:
        """Remove the workload's resources."""

    @abstractmethod
    def status(self) -> dict[str, str]:
        """Map each resource (``kind/name``) to a short state."""

    def validate(self) -> None:
        """Raise :class:`WorkloadError` if the workload is invalid.

        By default a workload is valid as long as it has a name to deploy under.
        """
        if not self.kube_name():
            raise WorkloadError("workload has no instance name")