from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from kubernetes import client

from kubedeploy.schemas.kubernetes import (
    DeploymentCreateRequest,
    PodCreateRequest,
    ServiceCreateRequest,
    VolumeSpec,
)
from kubedeploy.services import mapper

TODAY = date(2024, 5, 1)


def _service_request(service_type: str, node_port: int) -> ServiceCreateRequest:
    return ServiceCreateRequest.model_validate(
        {
            "name": "web",
            "namespace": "default",
            "type": service_type,
            "selector": {"app": "web"},
            "ports": [{"port": 80, "targetPort": 8080, "nodePort": node_port}],
        }
    )


def test_pod_round_trip_keeps_identity_fields() -> None:
    request = PodCreateRequest(name="a", namespace="default", image="nginx")
    response = mapper.pod_to_response(mapper.build_pod(request, today=TODAY))

    assert (response.name, response.namespace, response.image) == ("a", "default", "nginx")
    assert response.created_at is None
    assert response.restarts == 0


def test_pod_labels_and_restart_policy() -> None:
    pod = mapper.build_pod(PodCreateRequest(name="a", namespace="default", image="nginx"), today=TODAY)

    assert pod.metadata.labels == {"app": "a", "managed-by": "kube-deploy", "deployed-at": "2024-05-01"}
    assert pod.spec.restart_policy == "Always"
    assert pod.spec.containers[0].name == "a"


def test_pod_ports_accept_numbers_and_objects() -> None:
    request = PodCreateRequest.model_validate(
        {
            "name": "a",
            "namespace": "default",
            "image": "nginx",
            "ports": [80, {"name": "dns", "containerPort": 53, "protocol": "UDP"}],
        }
    )
    ports = mapper.build_pod(request).spec.containers[0].ports

    assert [(p.container_port, p.protocol) for p in ports] == [(80, "TCP"), (53, "UDP")]
    assert ports[1].name == "dns"


def test_deployment_round_trip_and_selector() -> None:
    request = DeploymentCreateRequest(name="web", namespace="prod", image="nginx:1.25", replicas=3)
    deployment = mapper.build_deployment(request, today=TODAY)
    response = mapper.deployment_to_response(deployment)

    assert (response.name, response.namespace, response.image, response.replicas) == ("web", "prod", "nginx:1.25", 3)
    assert deployment.spec.selector.match_labels == {"app": "web"}
    assert deployment.spec.template.metadata.labels == deployment.metadata.labels
    assert response.available_replicas == 0


def test_deployment_mounts_volumes() -> None:
    request = DeploymentCreateRequest.model_validate(
        {
            "name": "web",
            "namespace": "default",
            "image": "nginx",
            "volumes": [{"name": "cache", "mountPath": "/cache", "type": "emptyDir"}],
        }
    )
    deployment = mapper.build_deployment(request)
    mounts = deployment.spec.template.spec.containers[0].volume_mounts

    assert [(m.name, m.mount_path) for m in mounts] == [("cache", "/cache")]
    assert deployment.spec.template.spec.volumes[0].empty_dir is not None


@pytest.mark.parametrize(
    ("volume_type", "attr", "expected"),
    [
        ("emptyDir", "empty_dir", None),
        ("configMap", "config_map", ("name", "settings")),
        ("secret", "secret", ("secret_name", "settings")),
        ("persistentVolumeClaim", "persistent_volume_claim", ("claim_name", "settings")),
    ],
)
def test_recognized_volume_types_set_exactly_one_source(volume_type, attr, expected) -> None:
    volume = mapper.build_volume(VolumeSpec(name="v", mount_path="/data", type=volume_type, source="settings"))
    sources = {
        "empty_dir": volume.empty_dir,
        "config_map": volume.config_map,
        "secret": volume.secret,
        "persistent_volume_claim": volume.persistent_volume_claim,
    }

    assert [k for k, v in sources.items() if v is not None] == [attr]
    if expected is not None:
        field, value = expected
        assert getattr(sources[attr], field) == value


def test_unknown_volume_type_has_no_source() -> None:
    volume = mapper.build_volume(VolumeSpec(name="v", mount_path="/data", type="hostPath", source="/tmp"))

    assert volume.name == "v"
    assert volume.empty_dir is None
    assert volume.config_map is None
    assert volume.secret is None
    assert volume.persistent_volume_claim is None
    assert volume.host_path is None


def test_resources_requests_equal_limits() -> None:
    request = PodCreateRequest.model_validate(
        {"name": "a", "namespace": "default", "image": "nginx", "resources": {"cpu": "250m", "memory": "128Mi"}}
    )
    resources = mapper.build_pod(request).spec.containers[0].resources

    assert resources.requests == {"cpu": "250m", "memory": "128Mi"}
    assert resources.limits == resources.requests


def test_resources_omit_empty_quantities() -> None:
    request = PodCreateRequest.model_validate({"name": "a", "namespace": "default", "image": "nginx", "resources": {"memory": "64Mi"}})

    assert mapper.build_pod(request).spec.containers[0].resources.limits == {"memory": "64Mi"}
    assert mapper.build_pod(PodCreateRequest(name="a", namespace="default", image="nginx")).spec.containers[0].resources is None


@pytest.mark.parametrize(
    ("service_type", "node_port", "expected"),
    [
        ("NodePort", 30080, 30080),
        ("NodePort", 0, None),
        ("ClusterIP", 30080, None),
        ("LoadBalancer", 30080, None),
    ],
)
def test_node_port_only_for_nodeport_services(service_type, node_port, expected) -> None:
    service = mapper.build_service(_service_request(service_type, node_port))

    assert service.spec.ports[0].node_port == expected
    assert service.spec.ports[0].protocol == "TCP"


def test_service_labels_and_round_trip() -> None:
    service = mapper.build_service(_service_request("ClusterIP", 0), today=TODAY)
    service.spec.cluster_ip = "10.0.0.1"
    response = mapper.service_to_response(service)

    assert service.metadata.labels["created-at"] == "2024-05-01"
    assert service.spec.selector == {"app": "web"}
    assert (response.name, response.type, response.cluster_ip) == ("web", "ClusterIP", "10.0.0.1")
    assert response.external_ip is None
    assert response.ports[0].target_port == 8080


def test_external_address_prefers_ip_over_hostname() -> None:
    service = client.V1Service(
        metadata=client.V1ObjectMeta(name="lb"),
        spec=client.V1ServiceSpec(type="LoadBalancer"),
        status=client.V1ServiceStatus(
            load_balancer=client.V1LoadBalancerStatus(ingress=[client.V1LoadBalancerIngress(ip="1.2.3.4", hostname="lb.example.com")])
        ),
    )
    assert mapper.external_address(service) == "1.2.3.4"

    service.status.load_balancer.ingress[0].ip = None
    assert mapper.external_address(service) == "lb.example.com"


def test_pod_response_reads_first_container_restarts() -> None:
    pod = client.V1Pod(
        metadata=client.V1ObjectMeta(name="a", namespace="default", creation_timestamp=datetime(2024, 5, 1, 14, 30, tzinfo=timezone(timedelta(hours=2)))),
        spec=client.V1PodSpec(containers=[client.V1Container(name="a", image="nginx")]),
        status=client.V1PodStatus(
            phase="Running",
            container_statuses=[
                client.V1ContainerStatus(name="a", image="nginx", image_id="", ready=True, restart_count=4),
            ],
        ),
    )
    response = mapper.pod_to_response(pod)

    assert response.status == response.phase == "Running"
    assert response.restarts == 4
    assert response.created_at == "2024-05-01T12:30:00Z"


def test_namespace_names() -> None:
    namespaces = client.V1NamespaceList(items=[client.V1Namespace(metadata=client.V1ObjectMeta(name=n)) for n in ("default", "dev")])

    assert mapper.namespace_names(namespaces) == ["default", "dev"]
