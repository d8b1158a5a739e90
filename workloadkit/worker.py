"""Worker workload types: daemon processes that listen on no port."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from workloadkit.builders import DeploymentBuilder, StatefulsetBuilder
from workloadkit.metadata import Labels, Phase, WorkloadError, WorkloadMetadata, WorkloadType


def validate_worker(meta: WorkloadMetadata) -> None:
    """Raise :class:`WorkloadError` if any container of the component declares a port."""
    offender = next((c for c in meta.definition.containers if c.ports), None)
    if offender is not None:
        raise WorkloadError(f"Worker container named {offender.name} has a port declared")


@dataclass
class ReplicatedWorker(WorkloadType):
    """A worker that can be scaled, run as a Deployment."""

    meta: WorkloadMetadata
    replica_count: Optional[int] = None

    def labels(self) -> Labels:
        return self.meta.labels("Worker")

    def kube_name(self) -> str:
        return self.meta.kube_name()

    def _deployment(self) -> DeploymentBuilder:
        return (
            DeploymentBuilder(self.kube_name(), self.meta.definition)
            .parameter_map(self.meta.params)
            .labels(self.labels())
            .annotations(self.meta.annotations)
            .owner_ref(self.meta.owner_ref)
        )

    def add(self) -> None:
        self.meta.create_config_maps("Worker")
        self._deployment().do_request(self.meta.client, self.meta.namespace, Phase.ADD)

    def modify(self) -> None:
        self._deployment().do_request(self.meta.client, self.meta.namespace, Phase.MODIFY)

    def delete(self) -> None:
        DeploymentBuilder(self.kube_name(), self.meta.definition).do_request(
            self.meta.client, self.meta.namespace, Phase.DELETE
        )

    def status(self) -> dict[str, str]:
        return {f"deployment/{self.kube_name()}": self.meta.deployment_status()}

    def validate(self) -> None:
        validate_worker(self.meta)


@dataclass
class SingletonWorker(WorkloadType):
    """A single-instance worker, run as a StatefulSet."""

    meta: WorkloadMetadata

    def labels(self) -> Labels:
        return self.meta.labels("SingletonWorker")

    def kube_name(self) -> str:
        return self.meta.instance_name

    def _statefulset(self) -> StatefulsetBuilder:
        return (
            StatefulsetBuilder(self.kube_name(), self.meta.definition)
            .parameter_map(self.meta.params)
            .labels(self.labels())
            .annotations(self.meta.annotations)
            .owner_ref(self.meta.owner_ref)
        )

    def add(self) -> None:
        self.meta.create_config_maps("SingletonWorker")
        self._statefulset().do_request(self.meta.client, self.meta.namespace, Phase.ADD)

    def modify(self) -> None:
        self._statefulset().do_request(self.meta.client, self.meta.namespace, Phase.MODIFY)

    def delete(self) -> None:
        StatefulsetBuilder(self.kube_name(), self.meta.definition).do_request(
            self.meta.client, self.meta.namespace, Phase.DELETE
        )

    def status(self) -> dict[str, str]:
        name = self.kube_name()
        state = StatefulsetBuilder(name, self.meta.definition).status(
            self.meta.client, self.meta.namespace
        )
        return {f"statefulset/{name}": state}

    def validate(self) -> None:
        validate_worker(self.meta)