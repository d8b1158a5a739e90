"""Server workload types: a replicated deployment or a singleton statefulset, each behind a service."""

from __future__ import annotations

from dataclasses import dataclass

from workloadkit.builders import DeploymentBuilder, ServiceBuilder, StatefulsetBuilder
from workloadkit.metadata import Labels, Phase, WorkloadError, WorkloadMetadata, WorkloadType


def _service_builder(meta: WorkloadMetadata, name: str, labels: Labels) -> ServiceBuilder:
    return (
        ServiceBuilder(name, meta.definition)
        .labels(labels)
        .select_labels(meta.select_labels())
        .owner_ref(meta.owner_ref)
    )


@dataclass
class ReplicatedServer(WorkloadType):
    """A server component that can be scaled up or down, run as a Deployment."""

    meta: WorkloadMetadata

    def labels(self) -> Labels:
        return self.meta.labels("Service")

    def kube_name(self) -> str:
        return self.meta.instance_name

    def _deployment(self) -> DeploymentBuilder:
        return (
            DeploymentBuilder(self.kube_name(), self.meta.definition)
            .parameter_map(self.meta.params)
            .labels(self.labels())
            .annotations(self.meta.annotations)
            .owner_ref(self.meta.owner_ref)
        )

    def _send(self, phase: Phase) -> None:
        self._deployment().do_request(self.meta.client, self.meta.namespace, phase)
        _service_builder(self.meta, self.kube_name(), self.labels()).do_request(
            self.meta.client, self.meta.namespace, phase
        )

    def add(self) -> None:
        self.meta.create_config_maps("Service")
        self._send(Phase.ADD)

    def modify(self) -> None:
        self._send(Phase.MODIFY)

    def delete(self) -> None:
        name = self.kube_name()
        DeploymentBuilder(name, self.meta.definition).do_request(
            self.meta.client, self.meta.namespace, Phase.DELETE
        )
        ServiceBuilder(name, self.meta.definition).do_request(
            self.meta.client, self.meta.namespace, Phase.DELETE
        )

    def status(self) -> dict[str, str]:
        name = self.kube_name()
        resources = {f"deployment/{name}": self.meta.deployment_status()}
        resources[f"service/{name}"] = ServiceBuilder(name, self.meta.definition).get_status(
            self.meta.client, self.meta.namespace
        )
        return resources


@dataclass
class SingletonServer(WorkloadType):
    """A single-instance server, run as a StatefulSet with a Service in front of it."""

    meta: WorkloadMetadata

    def labels(self) -> Labels:
        return self.meta.labels("SingletonServer")

    def kube_name(self) -> str:
        return self.meta.instance_name

    def add(self) -> None:
        self.meta.create_config_maps("singleton-service")
        name = self.kube_name()
        (
            StatefulsetBuilder(name, self.meta.definition)
            .parameter_map(self.meta.params)
            .labels(self.labels())
            .annotations(self.meta.annotations)
            .owner_ref(self.meta.owner_ref)
            .do_request(self.meta.client, self.meta.namespace, Phase.ADD)
        )
        _service_builder(self.meta, name, self.labels()).do_request(
            self.meta.client, self.meta.namespace, Phase.ADD
        )

    def modify(self) -> None:
        """Always fails: a singleton server must be deleted and recreated instead."""
        raise WorkloadError(f"we don't support SingletonServer {self.kube_name()} modify")

    def delete(self) -> None:
        name = self.kube_name()
        StatefulsetBuilder(name, self.meta.definition).do_request(
            self.meta.client, self.meta.namespace, Phase.DELETE
        )
        ServiceBuilder(name, self.meta.definition).do_request(
            self.meta.client, self.meta.namespace, Phase.DELETE
        )

    def status(self) -> dict[str, str]:
        name = self.kube_name()
        resources = {
            f"statefulset/{name}": StatefulsetBuilder(name, self.meta.definition).status(
                self.meta.client, self.meta.namespace
            )
        }
        resources[f"service/{name}"] = ServiceBuilder(name, self.meta.definition).get_status(
            self.meta.client, self.meta.namespace
        )
        return resources