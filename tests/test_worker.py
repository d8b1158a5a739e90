from dataclasses import dataclass, field
from typing import Any, Optional

import pytest

from workloadkit.metadata import WorkloadError, WorkloadMetadata
from workloadkit.worker import ReplicatedWorker, SingletonWorker, validate_worker


@dataclass
class FakePort:
    name: str
    container_port: int


@dataclass
class FakeContainer:
    name: str
    ports: list = field(default_factory=list)


@dataclass
class FakeComponent:
    containers: list = field(default_factory=list)
    configs: dict = field(default_factory=dict)

    def evaluate_configs(self, params):
        return {key: dict(value) for key, value in self.configs.items()}

    def to_pod_spec_with_policy(self, params, policy):
        return {
            "restartPolicy": policy,
            "containers": [{"name": c.name} for c in self.containers],
        }

    def listening_port(self):
        return None


class FakeClient:
    def __init__(self, statuses: Optional[dict] = None, error: Optional[str] = None):
        self.calls: list[tuple] = []
        self.statuses = statuses or {}
        self.error = error

    def create(self, kind, namespace, body):
        self.calls.append(("create", kind, namespace, body))

    def patch(self, kind, namespace, name, body):
        self.calls.append(("patch", kind, namespace, name, body))

    def delete(self, kind, namespace, name):
        self.calls.append(("delete", kind, namespace, name))

    def get_status(self, kind, namespace, name) -> dict[str, Any]:
        self.calls.append(("get_status", kind, namespace, name))
        if self.error is not None:
            raise WorkloadError(self.error)
        return self.statuses[kind]


def make_meta(client=None, definition=None, annotations=None, component_name="workerbee"):
    return WorkloadMetadata(
        name="mytask",
        component_name=component_name,
        instance_name="workerinst",
        namespace="tests",
        definition=definition if definition is not None else FakeComponent(),
        client=client if client is not None else FakeClient(),
        params={},
        owner_ref=None,
        annotations=annotations,
    )


def good_component():
    return FakeComponent(containers=[FakeContainer(name="good-container", ports=[])])


def bad_container():
    return FakeContainer(
        name="bad-container",
        ports=[FakePort("http", 80), FakePort("https", 443)],
    )


def test_worker_labels():
    wrkr = ReplicatedWorker(meta=make_meta(), replica_count=1)
    assert wrkr.labels()["oam.dev/workload-type"] == "Worker"

    single = SingletonWorker(meta=make_meta())
    assert single.labels()["oam.dev/workload-type"] == "SingletonWorker"


def test_singleton_worker_validate():
    component = good_component()
    component.containers.append(bad_container())
    wrkr = SingletonWorker(meta=make_meta(definition=component, component_name="workermcworkyface"))
    with pytest.raises(WorkloadError, match="bad-container"):
        wrkr.validate()

    ok = SingletonWorker(meta=make_meta(definition=good_component()))
    assert ok.validate() is None


def test_replicated_worker_validate():
    component = good_component()
    component.containers.append(bad_container())
    wrkr = ReplicatedWorker(
        meta=make_meta(definition=component, component_name="workermcworkyface"),
        replica_count=132,
    )
    with pytest.raises(WorkloadError, match="has a port declared"):
        wrkr.validate()

    ok = ReplicatedWorker(meta=make_meta(definition=good_component()), replica_count=132)
    assert ok.validate() is None


def test_validate_worker_message():
    component = FakeComponent(containers=[bad_container()])
    with pytest.raises(WorkloadError) as info:
        validate_worker(make_meta(definition=component))
    assert str(info.value) == "Worker container named bad-container has a port declared"


def test_singleton_worker_kube_name():
    wrkr = SingletonWorker(meta=make_meta(component_name="workermcworkyface"))
    assert wrkr.kube_name() == "workerinst"


def test_replicated_worker_kube_name():
    wrkr = ReplicatedWorker(
        meta=make_meta(annotations={"annotation1": "value"}), replica_count=1
    )
    assert wrkr.kube_name() == "workerinst"


def test_replicated_worker_add_creates_config_maps_then_deployment():
    client = FakeClient()
    component = FakeComponent(
        containers=[FakeContainer("c")], configs={"cfg": {"a.txt": "hello"}}
    )
    ReplicatedWorker(meta=make_meta(client=client, definition=component)).add()
    assert [(c[0], c[1]) for c in client.calls] == [
        ("create", "ConfigMap"),
        ("create", "Deployment"),
    ]
    config_map = client.calls[0][3]
    assert config_map["data"] == {"a.txt": "hello"}
    assert config_map["metadata"]["labels"]["oam.dev/workload-type"] == "Worker"
    deployment = client.calls[1][3]
    assert deployment["metadata"]["name"] == "workerinst"
    assert deployment["spec"]["template"]["spec"]["restartPolicy"] == "Always"


def test_replicated_worker_modify_and_delete():
    client = FakeClient()
    wrkr = ReplicatedWorker(meta=make_meta(client=client))
    wrkr.modify()
    wrkr.delete()
    assert client.calls[0][:4] == ("patch", "Deployment", "tests", "workerinst")
    assert client.calls[1] == ("delete", "Deployment", "tests", "workerinst")


def test_singleton_worker_add_modify_delete():
    client = FakeClient()
    component = FakeComponent(configs={"cfg": {"k": "v"}})
    wrkr = SingletonWorker(meta=make_meta(client=client, definition=component))
    wrkr.add()
    wrkr.modify()
    wrkr.delete()
    assert [(c[0], c[1]) for c in client.calls] == [
        ("create", "ConfigMap"),
        ("create", "StatefulSet"),
        ("patch", "StatefulSet"),
        ("delete", "StatefulSet"),
    ]
    labels = client.calls[0][3]["metadata"]["labels"]
    assert labels["oam.dev/workload-type"] == "SingletonWorker"


def test_replicated_worker_status():
    client = FakeClient(
        statuses={"Deployment": {"status": {"replicas": 2, "availableReplicas": 2}}}
    )
    assert ReplicatedWorker(meta=make_meta(client=client)).status() == {
        "deployment/workerinst": "running"
    }


def test_replicated_worker_status_error_text():
    client = FakeClient(error="not found")
    assert ReplicatedWorker(meta=make_meta(client=client)).status() == {
        "deployment/workerinst": "not found"
    }


def test_singleton_worker_status():
    client = FakeClient(
        statuses={"StatefulSet": {"status": {"replicas": 1, "readyReplicas": 0}}}
    )
    assert SingletonWorker(meta=make_meta(client=client)).status() == {
        "statefulset/workerinst": "updating"
    }