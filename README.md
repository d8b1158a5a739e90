# workloadkit

Turn component definitions into Kubernetes resource manifests and drive their
lifecycle (add, modify, delete, status) through a client you supply.

Each workload type maps to one or more Kubernetes objects:

| Workload type                       | Resources               | Workload-type label |
|-------------------------------------|-------------------------|---------------------|
| `workloadkit.server.ReplicatedServer` | Deployment + Service  | `Service`           |
| `workloadkit.server.SingletonServer`  | StatefulSet + Service | `SingletonServer`   |
| `workloadkit.task.ReplicatedTask`     | Job (with parallelism)| `Task`              |
| `workloadkit.task.SingletonTask`      | Job                   | `SingletonTask`     |
| `workloadkit.worker.ReplicatedWorker` | Deployment            | `Worker`            |
| `workloadkit.worker.SingletonWorker`  | StatefulSet           | `SingletonWorker`   |

## Installation

```
pip install workloadkit
```

The package has no runtime dependencies.

## Concepts

### `workloadkit.metadata`

- `WorkloadMetadata` is a dataclass holding `name` (the release), `component_name`,
  `instance_name`, `namespace`, `definition` (the component), `client`,
  `params`, `owner_ref` and `annotations`.
  - `labels(workload_type)` returns `app.kubernetes.io/name`,
    `oam.dev/workload-type` and `oam.dev/instance-name`.
  - `select_labels()` returns `app.kubernetes.io/name` and `oam.dev/instance-name`.
  - `kube_name()` returns the instance name.
  - `to_config_maps(workload_type)` and `create_config_maps(workload_type)`
    turn the component's evaluated configs into ConfigMap objects and create them.
  - `deployment_status()` reports `running` (available equals desired
    replicas), `unavailable` (some replicas unavailable) or `updating`.
- `KubeClient` is the protocol the workloads talk through: `create(kind,
  namespace, body)`, `patch(kind, namespace, name, body)`, `delete(kind,
  namespace, name)` and `get_status(kind, namespace, name)`. Implementations
  raise `WorkloadError` when a request fails.
- `Phase` is `ADD`, `MODIFY` or `DELETE`. Any other phase name is treated as `ADD`.
- `WorkloadType` is the abstract base of every workload type, with `kube_name()`,
  `add()`, `modify()`, `delete()`, `status()` and `validate()`.
- `form_metadata(name, labels, owner_references)` and
  `to_config_maps(configs, owner_ref, labels)` build object metadata and
  ConfigMap objects (ordered by name).
- `WorkloadError` is raised for failed operations and failed validation.

### `workloadkit.builders`

`DeploymentBuilder`, `JobBuilder`, `StatefulsetBuilder` and `ServiceBuilder`
are chained builders that produce manifests as plain dictionaries
(`to_deployment()`, `to_job()`, `to_statefulset()`, `to_service()`) and send
them with `do_request(client, namespace, phase)`.

- Deployments and stateful sets use restart policy `Always`; jobs default to
  `Never` (change it with `restart_policy(...)`) and carry `backoffLimit: 4`.
- `JobBuilder.do_request` with the add phase first creates the job's config maps.
- `ServiceBuilder.to_service()` returns `None` when the component has no
  listening port, and `do_request` then does nothing. Modifying a service
  patches only its `spec`.
- Status summaries: jobs report `running`, `failed` or `succeeded`; stateful
  sets `running` or `updating`; services `created` or `not existed`. If the
  client raises `WorkloadError` on lookup, the error text is returned instead.

### The component definition

`definition` can be any object that provides:

- `evaluate_configs(params)` — a mapping of config-map name to data;
- `to_pod_spec_with_policy(params, restart_policy)` — the pod spec;
- `listening_port()` — a port object with `to_service_port()`, or `None`;
- `containers` — items with `name` and `ports` (used by worker validation).

## Example

```python
from workloadkit.metadata import WorkloadMetadata
from workloadkit.server import ReplicatedServer

meta = WorkloadMetadata(
    name="shop",
    component_name="frontend",
    instance_name="frontend-v1",
    namespace="default",
    definition=component,   # see "The component definition"
    client=client,          # a KubeClient implementation
)

server = ReplicatedServer(meta=meta)
server.add()
print(server.status())   # {"deployment/frontend-v1": ..., "service/frontend-v1": ...}
```

Worker types refuse containers that declare ports:

```python
from workloadkit.worker import ReplicatedWorker

worker = ReplicatedWorker(meta=meta)
worker.validate()   # raises WorkloadError if any container has a port
```

A `SingletonServer` cannot be modified in place; `modify()` raises
`WorkloadError`. Delete it and add a new one instead.

## What this package does not do

- It ships no Kubernetes client: you provide a `KubeClient` implementation.
- It ships no component model: the `definition` object, including how it
  renders pod specs and evaluates configs, is yours to supply.
- It has no command-line tool and runs no controller loop; it is a library.

## Running the tests

```
pip install -e ".[test]"
pytest
```