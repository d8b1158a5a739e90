"""Builders for the Kubernetes objects that back workload types."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Callable, Optional, Union

from workloadkit.metadata import (
    KubeClient,
    Labels,
    OwnerReferences,
    Phase,
    WorkloadError,
    form_metadata,
    to_config_maps,
)

log = logging.getLogger(__name__)

PhaseLike = Union[Phase, str]


def _status_section(obj: dict[str, Any], kind: str, name: str) -> dict[str, Any]:
    status = obj.get("status")
    if status is None:
        raise WorkloadError(f"{kind.lower()} {name} has no status")
    return status


class _ObjectBuilder:
    """Shared state and requests for a single named Kubernetes object."""

    _kind = ""

    def __init__(self, instance_name: str, component: Any) -> None:
        self._component = component
        self._name = instance_name
        self._labels: Labels = {}
        self._owner_ref: OwnerReferences = None

    def _set_labels(self, labels: Labels) -> None:
        self._labels = dict(labels)

    def _set_owner_ref(self, owner: OwnerReferences) -> None:
        self._owner_ref = copy.deepcopy(owner)

    def _metadata(self) -> dict[str, Any]:
        return form_metadata(self._name, self._labels, self._owner_ref)

    def _report(
        self,
        client: KubeClient,
        namespace: str,
        summarise: Callable[[dict[str, Any]], str],
    ) -> str:
        """Summarise the live object; a failed lookup yields the error text."""
        try:
            obj = client.get_status(self._kind, namespace, self._name)
        except WorkloadError as exc:
            return str(exc)
        return summarise(obj)

    def _send(
        self,
        client: KubeClient,
        namespace: str,
        phase: PhaseLike,
        body: dict[str, Any],
        patch_body: Any = None,
    ) -> None:
        match Phase(phase):
            case Phase.MODIFY:
                client.patch(
                    self._kind, namespace, self._name, body if patch_body is None else patch_body
                )
            case Phase.DELETE:
                client.delete(self._kind, namespace, self._name)
            case _:
                client.create(self._kind, namespace, body)


class _PodBuilder(_ObjectBuilder):
    """An object that carries a pod template."""

    _default_restart_policy = "Always"

    def __init__(self, instance_name: str, component: Any) -> None:
        super().__init__(instance_name, component)
        self._annotations: Optional[Labels] = None
        self._restart_policy = self._default_restart_policy
        self._param_vals: dict[str, Any] = {}

    def _set_annotations(self, annotations: Optional[Labels]) -> None:
        self._annotations = None if annotations is None else dict(annotations)

    def _set_param_vals(self, param_vals: dict[str, Any]) -> None:
        self._param_vals = dict(param_vals)

    def _pod_template(self) -> dict[str, Any]:
        metadata: dict[str, Any] = {"name": self._name, "labels": dict(self._labels)}
        if self._annotations is not None:
            metadata["annotations"] = dict(self._annotations)
        if self._owner_ref is not None:
            metadata["ownerReferences"] = [dict(ref) for ref in self._owner_ref]
        pod_spec = self._component.to_pod_spec_with_policy(
            dict(self._param_vals), self._restart_policy
        )
        return {"metadata": metadata, "spec": pod_spec}

    def _selected_spec(self) -> dict[str, Any]:
        return {
            "selector": {"matchLabels": dict(self._labels)},
            "template": self._pod_template(),
        }


class DeploymentBuilder(_PodBuilder):
    """Builds a Deployment for a component instance."""

    _kind = "Deployment"

    def __init__(self, instance_name: str, component: Any) -> None:
        super().__init__(instance_name, component)
        self._replicas: Optional[int] = None

    def labels(self, labels: Labels) -> DeploymentBuilder:
        self._set_labels(labels)
        return self

    def annotations(self, annotations: Optional[Labels]) -> DeploymentBuilder:
        """Set annotations placed on the pod template."""
        self._set_annotations(annotations)
        return self

    def parameter_map(self, param_vals: dict[str, Any]) -> DeploymentBuilder:
        self._set_param_vals(param_vals)
        return self

    def owner_ref(self, owner: OwnerReferences) -> DeploymentBuilder:
        """Set the owner references for the deployment and its pods."""
        self._set_owner_ref(owner)
        return self

    def to_deployment(self) -> dict[str, Any]:
        spec = self._selected_spec()
        if self._replicas is not None:
            spec["replicas"] = self._replicas
        return {"metadata": self._metadata(), "spec": spec}

    def do_request(self, client: KubeClient, namespace: str, phase: PhaseLike) -> None:
        self._send(client, namespace, phase, self.to_deployment())


class JobBuilder(_PodBuilder):
    """Builds a Job for a component instance."""

    _kind = "Job"
    _default_restart_policy = "Never"

    def __init__(self, instance_name: str, component: Any) -> None:
        super().__init__(instance_name, component)
        self._parallelism: Optional[int] = None

    def labels(self, labels: Labels) -> JobBuilder:
        self._set_labels(labels)
        return self

    def annotations(self, annotations: Optional[Labels]) -> JobBuilder:
        """Set annotations placed on the pod template."""
        self._set_annotations(annotations)
        return self

    def parameter_map(self, param_vals: dict[str, Any]) -> JobBuilder:
        self._set_param_vals(param_vals)
        return self

    def restart_policy(self, policy: str) -> JobBuilder:
        self._restart_policy = policy
        return self

    def owner_ref(self, owner: OwnerReferences) -> JobBuilder:
        """Set the owner references for the job and its pods."""
        self._set_owner_ref(owner)
        return self

    def parallelism(self, count: int) -> JobBuilder:
        self._parallelism = count
        return self

    def to_config_maps(self) -> list[dict[str, Any]]:
        configs = self._component.evaluate_configs(dict(self._param_vals))
        return to_config_maps(configs, self._owner_ref, self._labels)

    def to_job(self) -> dict[str, Any]:
        spec: dict[str, Any] = {"backoffLimit": 4, "template": self._pod_template()}
        if self._parallelism is not None:
            spec["parallelism"] = self._parallelism
        return {"metadata": self._metadata(), "spec": spec}

    def get_status(self, client: KubeClient, namespace: str) -> str:
        """Summarise the job as running, failed or succeeded."""

        def summarise(job: dict[str, Any]) -> str:
            status = _status_section(job, self._kind, self._name)
            if (status.get("active") or 0) > 0:
                return "running"
            if (status.get("failed") or 0) > 0:
                return "failed"
            return "succeeded"

        return self._report(client, namespace, summarise)

    def do_request(self, client: KubeClient, namespace: str, phase: PhaseLike) -> None:
        job = self.to_job()
        if Phase(phase) is Phase.ADD:
            for config_map in self.to_config_maps():
                client.create("ConfigMap", namespace, config_map)
        self._send(client, namespace, phase, job)


class ServiceBuilder(_ObjectBuilder):
    """Builds a Service in front of a component's listening port."""

    _kind = "Service"

    def __init__(self, instance_name: str, component: Any) -> None:
        super().__init__(instance_name, component)
        self._selector: Labels = {}

    def labels(self, labels: Labels) -> ServiceBuilder:
        self._set_labels(labels)
        return self

    def select_labels(self, labels: Labels) -> ServiceBuilder:
        self._selector = dict(labels)
        return self

    def owner_ref(self, owner_ref: OwnerReferences) -> ServiceBuilder:
        self._set_owner_ref(owner_ref)
        return self

    def to_service(self) -> Optional[dict[str, Any]]:
        """Return the service, or None when the component listens on no port."""
        port = self._component.listening_port()
        if port is None:
            return None
        return {
            "metadata": self._metadata(),
            "spec": {
                "selector": dict(self._selector),
                "ports": [port.to_service_port()],
            },
        }

    def get_status(self, client: KubeClient, namespace: str) -> str:
        """Report whether the service exists."""
        return self._report(
            client,
            namespace,
            lambda service: "created" if service.get("status") is not None else "not existed",
        )

    def do_request(self, client: KubeClient, namespace: str, phase: PhaseLike) -> None:
        service = self.to_service()
        if service is None:
            log.info("Not attaching service to pod with no container ports.")
            return
        log.debug("Service:\n%s", json.dumps(service, indent=2, default=str))
        self._send(client, namespace, phase, service, patch_body=service["spec"])


class StatefulsetBuilder(_PodBuilder):
    """Builds a StatefulSet for singleton servers and workers."""

    _kind = "StatefulSet"

    def labels(self, labels: Labels) -> StatefulsetBuilder:
        self._set_labels(labels)
        return self

    def annotations(self, annotations: Optional[Labels]) -> StatefulsetBuilder:
        """Set annotations placed on the pod template."""
        self._set_annotations(annotations)
        return self

    def parameter_map(self, param_vals: dict[str, Any]) -> StatefulsetBuilder:
        self._set_param_vals(param_vals)
        return self

    def owner_ref(self, owner: OwnerReferences) -> StatefulsetBuilder:
        """Set the owner references for the statefulset and its pods."""
        self._set_owner_ref(owner)
        return self

    def to_statefulset(self) -> dict[str, Any]:
        return {"metadata": self._metadata(), "spec": self._selected_spec()}

    def status(self, client: KubeClient, namespace: str) -> str:
        """Summarise the statefulset as running or updating."""

        def summarise(statefulset: dict[str, Any]) -> str:
            status = _status_section(statefulset, self._kind, self._name)
            replicas = status.get("replicas") or 0
            ready = status.get("readyReplicas") or 0
            return "running" if ready == replicas else "updating"

        return self._report(client, namespace, summarise)

    def do_request(self, client: KubeClient, namespace: str, phase: PhaseLike) -> None:
        self._send(client, namespace, phase, self.to_statefulset())