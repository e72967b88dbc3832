from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from kubernetes import client as k8s

from kubedeploy.config import Settings
from kubedeploy.main import create_app
from kubedeploy.services.kube_client import ALL_NAMESPACES, ConflictError, NotFoundError


class FakeGateway:
    """In-memory stand-in for KubernetesGateway with the same async surface."""

    def __init__(self, namespaces: tuple[str, ...] = ("default", "kube-system")) -> None:
        self.namespaces = list(namespaces)
        self.objects: dict[tuple[str, str, str], object] = {}
        self.logs: dict[tuple[str, str], str] = {}
        self.log_requests: list[int] = []

    def _create(self, kind: str, namespace: str, obj):
        key = (kind, namespace, obj.metadata.name)
        if key in self.objects:
            raise ConflictError(f"create_{kind}", f'{kind}s "{obj.metadata.name}" already exists', status=409)
        obj.metadata.namespace = namespace
        obj.metadata.creation_timestamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        obj.metadata.resource_version = "1"
        self.objects[key] = obj
        return obj

    def _get(self, kind: str, namespace: str, name: str):
        try:
            return self.objects[(kind, namespace, name)]
        except KeyError:
            raise NotFoundError(f"get_{kind}", f'{kind}s "{name}" not found', status=404) from None

    def _delete(self, kind: str, namespace: str, name: str) -> None:
        self._get(kind, namespace, name)
        del self.objects[(kind, namespace, name)]

    def _list(self, kind: str, namespace: str) -> list:
        return [
            obj
            for (k, ns, _), obj in self.objects.items()
            if k == kind and (namespace in ALL_NAMESPACES or ns == namespace)
        ]

    async def ping(self) -> None:
        return None

    async def list_namespaces(self) -> k8s.V1NamespaceList:
        return k8s.V1NamespaceList(items=[k8s.V1Namespace(metadata=k8s.V1ObjectMeta(name=n)) for n in self.namespaces])

    async def create_pod(self, namespace, pod):
        pod.status = k8s.V1PodStatus(phase="Pending")
        return self._create("pod", namespace, pod)

    async def get_pod(self, namespace, name):
        return self._get("pod", namespace, name)

    async def list_pods(self, namespace=""):
        return k8s.V1PodList(items=self._list("pod", namespace))

    async def delete_pod(self, namespace, name):
        self._delete("pod", namespace, name)

    async def get_pod_logs(self, namespace, name, tail_lines=100):
        self._get("pod", namespace, name)
        self.log_requests.append(tail_lines)
        return self.logs.get((namespace, name), "")

    async def create_deployment(self, namespace, deployment):
        deployment.status = k8s.V1DeploymentStatus(replicas=deployment.spec.replicas, available_replicas=0, ready_replicas=0)
        return self._create("deployment", namespace, deployment)

    async def get_deployment(self, namespace, name):
        return self._get("deployment", namespace, name)

    async def list_deployments(self, namespace=""):
        return k8s.V1DeploymentList(items=self._list("deployment", namespace))

    async def delete_deployment(self, namespace, name):
        self._delete("deployment", namespace, name)

    async def scale_deployment(self, namespace, name, replicas):
        deployment = self._get("deployment", namespace, name)
        deployment.spec.replicas = replicas
        return deployment

    async def create_service(self, namespace, service):
        service.spec.cluster_ip = "10.96.0.10"
        return self._create("service", namespace, service)

    async def get_service(self, namespace, name):
        return self._get("service", namespace, name)

    async def list_services(self, namespace=""):
        return k8s.V1ServiceList(items=self._list("service", namespace))

    async def delete_service(self, namespace, name):
        self._delete("service", namespace, name)


def make_settings(**overrides) -> Settings:
    values = {
        "app_env": "test",
        "database_url": None,
        "auth_mode": "auto",
        "seed_demo_users": True,
        "jwt_secret": "test-secret",
        "cors_origins": "",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(settings: Settings, gateway: FakeGateway) -> Iterator[TestClient]:
    app = create_app(settings, gateway=gateway)  # type: ignore[arg-type]
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_settings(tmp_path: Path) -> Settings:
    return make_settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'users.db'}")


@pytest.fixture
def db_client(db_settings: Settings, gateway: FakeGateway) -> Iterator[TestClient]:
    app = create_app(db_settings, gateway=gateway)  # type: ignore[arg-type]
    with TestClient(app) as test_client:
        yield test_client
