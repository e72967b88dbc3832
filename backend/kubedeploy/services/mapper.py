"""
Request → Kubernetes object and Kubernetes object → response mapping.

Everything here is pure: no client calls, no logging. Requests reaching these
functions have already been validated by the schemas, so missing required
fields are not re-checked.

The date label uses the build time (UTC) rather than the time the request was
submitted. Pass ``today`` to pin it in tests.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from kubernetes import client

from kubedeploy.schemas.kubernetes import (
    ContainerPort,
    DeploymentCreateRequest,
    DeploymentResponse,
    PodCreateRequest,
    PodResponse,
    ResourceRequests,
    ServiceCreateRequest,
    ServicePort,
    ServiceResponse,
    VolumeSpec,
)

MANAGED_BY = "kube-deploy"
DEFAULT_PROTOCOL = "TCP"


def _date_label(today: date | None) -> str:
    return (today or datetime.now(timezone.utc).date()).strftime("%Y-%m-%d")


def build_labels(name: str, date_key: str, today: date | None = None) -> dict[str, str]:
    return {
        "app": name,
        "managed-by": MANAGED_BY,
        date_key: _date_label(today),
    }


def build_resources(resources: ResourceRequests) -> client.V1ResourceRequirements | None:
    """Requests and limits are identical; an empty quantity omits that resource."""
    quantities: dict[str, str] = {}
    if resources.cpu:
        quantities["cpu"] = resources.cpu
    if resources.memory:
        quantities["memory"] = resources.memory
    if not quantities:
        return None
    return client.V1ResourceRequirements(requests=dict(quantities), limits=dict(quantities))


def build_container_port(port: int | ContainerPort) -> client.V1ContainerPort:
    if isinstance(port, int):
        return client.V1ContainerPort(container_port=port, protocol=DEFAULT_PROTOCOL)
    return client.V1ContainerPort(
        name=port.name or None,
        container_port=port.container_port,
        protocol=port.protocol or DEFAULT_PROTOCOL,
    )


def build_volume(spec: VolumeSpec) -> client.V1Volume:
    """Map a volume spec to a V1Volume.

    Exactly one source is populated for the four recognized types. Any other
    type produces a volume with no source at all; the API server decides what
    to do with it.
    """
    volume = client.V1Volume(name=spec.name)
    if spec.type == "emptyDir":
        volume.empty_dir = client.V1EmptyDirVolumeSource()
    elif spec.type == "configMap":
        volume.config_map = client.V1ConfigMapVolumeSource(name=spec.source)
    elif spec.type == "secret":
        volume.secret = client.V1SecretVolumeSource(secret_name=spec.source)
    elif spec.type == "persistentVolumeClaim":
        volume.persistent_volume_claim = client.V1PersistentVolumeClaimVolumeSource(claim_name=spec.source)
    return volume


def build_volume_mount(spec: VolumeSpec) -> client.V1VolumeMount:
    return client.V1VolumeMount(name=spec.name, mount_path=spec.mount_path)


def _build_container(
    request: PodCreateRequest | DeploymentCreateRequest,
    volume_mounts: list[client.V1VolumeMount] | None = None,
) -> client.V1Container:
    return client.V1Container(
        name=request.name,
        image=request.image,
        ports=[build_container_port(p) for p in request.ports] or None,
        env=[client.V1EnvVar(name=e.name, value=e.value) for e in request.env] or None,
        resources=build_resources(request.resources),
        volume_mounts=volume_mounts or None,
        command=list(request.command) or None,
        args=list(request.args) or None,
    )


def build_pod(request: PodCreateRequest, today: date | None = None) -> client.V1Pod:
    return client.V1Pod(
        api_version="v1",
        kind="Pod",
        metadata=client.V1ObjectMeta(
            name=request.name,
            namespace=request.namespace,
            labels=build_labels(request.name, "deployed-at", today),
        ),
        spec=client.V1PodSpec(
            containers=[_build_container(request)],
            restart_policy="Always",
        ),
    )


def build_deployment(request: DeploymentCreateRequest, today: date | None = None) -> client.V1Deployment:
    labels = build_labels(request.name, "deployed-at", today)
    volume_mounts = [build_volume_mount(v) for v in request.volumes]
    volumes = [build_volume(v) for v in request.volumes]

    return client.V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=client.V1ObjectMeta(
            name=request.name,
            namespace=request.namespace,
            labels=labels,
        ),
        spec=client.V1DeploymentSpec(
            replicas=request.replicas,
            selector=client.V1LabelSelector(match_labels={"app": request.name}),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels=dict(labels)),
                spec=client.V1PodSpec(
                    containers=[_build_container(request, volume_mounts)],
                    volumes=volumes or None,
                ),
            ),
        ),
    )


def build_service_port(port: ServicePort, service_type: str) -> client.V1ServicePort:
    service_port = client.V1ServicePort(
        name=port.name or None,
        port=port.port,
        target_port=port.target_port,
        protocol=port.protocol or DEFAULT_PROTOCOL,
    )
    # left unset otherwise so the API server assigns or rejects it
    if service_type == "NodePort" and port.node_port > 0:
        service_port.node_port = port.node_port
    return service_port


def build_service(request: ServiceCreateRequest, today: date | None = None) -> client.V1Service:
    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=client.V1ObjectMeta(
            name=request.name,
            namespace=request.namespace,
            labels=build_labels(request.name, "created-at", today),
        ),
        spec=client.V1ServiceSpec(
            type=request.type,
            selector=dict(request.selector),
            ports=[build_service_port(p, request.type) for p in request.ports],
        ),
    )


def format_timestamp(value: Any) -> str | None:
    """RFC 3339 in UTC, None when the object has not been persisted yet."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return str(value)


def _first_image(pod_spec: client.V1PodSpec | None) -> str:
    containers = getattr(pod_spec, "containers", None) or []
    if not containers:
        return ""
    return containers[0].image or ""


def pod_to_response(pod: client.V1Pod) -> PodResponse:
    meta = pod.metadata or client.V1ObjectMeta()
    status = pod.status
    phase = getattr(status, "phase", None) or ""
    container_statuses = getattr(status, "container_statuses", None) or []
    restarts = int(container_statuses[0].restart_count or 0) if container_statuses else 0

    return PodResponse(
        name=meta.name or "",
        namespace=meta.namespace or "",
        status=phase,
        phase=phase,
        created_at=format_timestamp(meta.creation_timestamp),
        image=_first_image(pod.spec),
        restarts=restarts,
        labels=meta.labels or None,
    )


def deployment_to_response(deployment: client.V1Deployment) -> DeploymentResponse:
    meta = deployment.metadata or client.V1ObjectMeta()
    spec = deployment.spec
    status = deployment.status
    template_spec = getattr(getattr(spec, "template", None), "spec", None)

    return DeploymentResponse(
        name=meta.name or "",
        namespace=meta.namespace or "",
        replicas=int(getattr(spec, "replicas", None) or 0),
        available_replicas=int(getattr(status, "available_replicas", None) or 0),
        ready_replicas=int(getattr(status, "ready_replicas", None) or 0),
        created_at=format_timestamp(meta.creation_timestamp),
        image=_first_image(template_spec),
        labels=meta.labels or None,
    )


def _int_or_zero(value: Any) -> int:
    # named target ports ("http") have no numeric value
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 0


def external_address(service: client.V1Service) -> str | None:
    """Load-balancer IP if present, else its hostname."""
    load_balancer = getattr(getattr(service, "status", None), "load_balancer", None)
    ingress = getattr(load_balancer, "ingress", None) or []
    if not ingress:
        return None
    return ingress[0].ip or ingress[0].hostname or None


def service_to_response(service: client.V1Service) -> ServiceResponse:
    meta = service.metadata or client.V1ObjectMeta()
    spec = service.spec or client.V1ServiceSpec()
    ports = [
        ServicePort(
            name=p.name or "",
            port=p.port,
            target_port=_int_or_zero(p.target_port),
            node_port=p.node_port or 0,
            protocol=p.protocol or "",
        )
        for p in (spec.ports or [])
    ]

    return ServiceResponse(
        name=meta.name or "",
        namespace=meta.namespace or "",
        type=spec.type or "",
        cluster_ip=spec.cluster_ip or "",
        external_ip=external_address(service),
        ports=ports,
        created_at=format_timestamp(meta.creation_timestamp),
        labels=meta.labels or None,
    )


def namespace_names(namespace_list: client.V1NamespaceList) -> list[str]:
    return [ns.metadata.name for ns in (namespace_list.items or []) if ns.metadata is not None]
