"""Task workload types, run as Kubernetes Jobs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from workloadkit.builders import JobBuilder
from workloadkit.metadata import Labels, Phase, WorkloadMetadata, WorkloadType


class _JobTask:
    """Helpers for workloads backed by a single Job."""

    meta: WorkloadMetadata

    def labels(self) -> Labels:
        raise NotImplementedError

    def kube_name(self) -> str:
        return self.meta.instance_name

    def _bare_job(self) -> JobBuilder:
        return JobBuilder(self.kube_name(), self.meta.definition)

    def _job(self, parallelism: Optional[int] = None) -> JobBuilder:
        builder = (
            self._bare_job()
            .parameter_map(self.meta.params)
            .labels(self.labels())
            .annotations(self.meta.annotations)
        )
        if parallelism is not None:
            builder = builder.parallelism(parallelism)
        return builder.owner_ref(self.meta.owner_ref).restart_policy("Never")

    def _request(self, builder: JobBuilder, phase: Phase) -> None:
        builder.do_request(self.meta.client, self.meta.namespace, phase)

    def _job_status(self) -> dict[str, str]:
        state = self._bare_job().get_status(self.meta.client, self.meta.namespace)
        return {f"job/{self.kube_name()}": state}


@dataclass
class ReplicatedTask(_JobTask, WorkloadType):
    """A non-daemon process that can be parallelised."""

    meta: WorkloadMetadata
    replica_count: Optional[int] = None

    def labels(self) -> Labels:
        return self.meta.labels("Task")

    def kube_name(self) -> str:
        return self.meta.instance_name

    def _parallelism(self) -> int:
        return 1 if self.replica_count is None else self.replica_count

    def add(self) -> None:
        self._request(self._job(self._parallelism()), Phase.ADD)

    def modify(self) -> None:
        self._request(self._job(self._parallelism()), Phase.MODIFY)

    def delete(self) -> None:
        self._request(self._bare_job(), Phase.DELETE)

    def status(self) -> dict[str, str]:
        return self._job_status()


@dataclass
class SingletonTask(_JobTask, WorkloadType):
    """A non-daemon process run once."""

    meta: WorkloadMetadata

    def labels(self) -> Labels:
        return self.meta.labels("SingletonTask")

    def kube_name(self) -> str:
        return self.meta.instance_name

    def add(self) -> None:
        self._request(self._job(), Phase.ADD)

    def modify(self) -> None:
        self._request(self._job(), Phase.MODIFY)

    def delete(self) -> None:
        self._request(self._bare_job(), Phase.DELETE)

    def status(self) -> dict[str, str]:
        return self._job_status()