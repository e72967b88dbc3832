from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any, TypeVar

import structlog
import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_TAIL_LINES = 100
ALL_NAMESPACES = ("", "*")


class GatewayError(Exception):
    """A cluster API call failed; ``cause`` is the underlying error text."""

    def __init__(self, operation: str, cause: str, *, status: int | None = None) -> None:
        super().__init__(cause)
        self.operation = operation
        self.cause = cause
        self.status = status


class NotFoundError(GatewayError):
    pass


class ConflictError(GatewayError):
    pass


class GatewayTimeoutError(GatewayError):
    pass


def _api_exception_cause(exc: ApiException) -> str:
    # the API server puts a readable message in the Status body
    body = getattr(exc, "body", None)
    if body:
        try:
            message = json.loads(body).get("message")
            if message:
                return str(message)
        except (ValueError, AttributeError):
            pass
    return f"({exc.status}) {exc.reason}" if exc.status else str(exc)


def _wrap_api_exception(operation: str, exc: ApiException) -> GatewayError:
    cause = _api_exception_cause(exc)
    if exc.status == 404:
        return NotFoundError(operation, cause, status=404)
    if exc.status == 409:
        return ConflictError(operation, cause, status=409)
    return GatewayError(operation, cause, status=exc.status)


class KubernetesGateway:
    """Thin async wrapper around the Kubernetes Python client.

    One client call per operation. Each call runs in a worker thread and is
    bounded by ``timeout`` seconds, passed to the transport as
    ``_request_timeout`` and enforced again on the awaiting side. Nothing is
    retried or cached.
    """

    def __init__(
        self,
        core_v1: client.CoreV1Api,
        apps_v1: client.AppsV1Api,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._core_v1 = core_v1
        self._apps_v1 = apps_v1
        self.timeout = timeout

    @classmethod
    def from_kubeconfig(
        cls,
        kubeconfig_path: str | None = None,
        context: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> "KubernetesGateway":
        """In-cluster service account first, then the kubeconfig file."""
        configuration = client.Configuration()
        try:
            config.load_incluster_config(client_configuration=configuration)
            source = "in-cluster"
        except ConfigException:
            try:
                config.load_kube_config(
                    config_file=kubeconfig_path,
                    context=context,
                    client_configuration=configuration,
                )
            except (ConfigException, OSError) as exc:
                raise GatewayError("load_config", f"failed to build config: {exc}") from exc
            source = kubeconfig_path or "default kubeconfig"

        logger.info("kubernetes.config_loaded", source=source, host=configuration.host)
        api_client = client.ApiClient(configuration)
        return cls(client.CoreV1Api(api_client), client.AppsV1Api(api_client), timeout=timeout)

    async def _call(self, operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        kwargs.setdefault("_request_timeout", self.timeout)
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, *args, **kwargs), timeout=self.timeout)
        except ApiException as exc:
            error = _wrap_api_exception(operation, exc)
        except asyncio.TimeoutError:
            error = GatewayTimeoutError(operation, f"context deadline exceeded after {self.timeout:g}s")
        except (urllib3.exceptions.HTTPError, OSError) as exc:
            error = GatewayError(operation, str(exc))

        logger.warning(f"kubernetes.{operation}_failed", error=error.cause, status=error.status)
        raise error

    async def ping(self) -> None:
        await self._call("ping", self._core_v1.list_namespace, limit=1)

    async def list_namespaces(self) -> client.V1NamespaceList:
        return await self._call("list_namespaces", self._core_v1.list_namespace)

    # Pods

    async def create_pod(self, namespace: str, pod: client.V1Pod) -> client.V1Pod:
        return await self._call("create_pod", self._core_v1.create_namespaced_pod, namespace=namespace, body=pod)

    async def get_pod(self, namespace: str, name: str) -> client.V1Pod:
        return await self._call("get_pod", self._core_v1.read_namespaced_pod, name=name, namespace=namespace)

    async def list_pods(self, namespace: str = "") -> client.V1PodList:
        if namespace in ALL_NAMESPACES:
            return await self._call("list_pods", self._core_v1.list_pod_for_all_namespaces)
        return await self._call("list_pods", self._core_v1.list_namespaced_pod, namespace=namespace)

    async def delete_pod(self, namespace: str, name: str) -> None:
        await self._call("delete_pod", self._core_v1.delete_namespaced_pod, name=name, namespace=namespace)

    async def get_pod_logs(self, namespace: str, name: str, tail_lines: int = DEFAULT_TAIL_LINES) -> str:
        """Fully buffered tail of the pod log; ``tail_lines <= 0`` returns all of it."""
        kwargs: dict[str, Any] = {}
        if tail_lines > 0:
            kwargs["tail_lines"] = tail_lines
        logs = await self._call("get_pod_logs", self._core_v1.read_namespaced_pod_log, name=name, namespace=namespace, **kwargs)
        return logs or ""

    # Deployments

    async def create_deployment(self, namespace: str, deployment: client.V1Deployment) -> client.V1Deployment:
        return await self._call("create_deployment", self._apps_v1.create_namespaced_deployment, namespace=namespace, body=deployment)

    async def get_deployment(self, namespace: str, name: str) -> client.V1Deployment:
        return await self._call("get_deployment", self._apps_v1.read_namespaced_deployment, name=name, namespace=namespace)

    async def list_deployments(self, namespace: str = "") -> client.V1DeploymentList:
        if namespace in ALL_NAMESPACES:
            return await self._call("list_deployments", self._apps_v1.list_deployment_for_all_namespaces)
        return await self._call("list_deployments", self._apps_v1.list_namespaced_deployment, namespace=namespace)

    async def delete_deployment(self, namespace: str, name: str) -> None:
        await self._call("delete_deployment", self._apps_v1.delete_namespaced_deployment, name=name, namespace=namespace)

    async def scale_deployment(self, namespace: str, name: str, replicas: int) -> client.V1Deployment:
        """Read the deployment, set spec.replicas, replace it.

        Not atomic: nothing is held between the read and the write. The
        replaced object carries the resourceVersion that was read, so if
        another writer updated the deployment in between, the API server
        rejects this write and ConflictError is raised. The caller decides
        whether to try again.
        """
        deployment = await self.get_deployment(namespace, name)
        deployment.spec.replicas = replicas
        return await self._call(
            "scale_deployment",
            self._apps_v1.replace_namespaced_deployment,
            name=name,
            namespace=namespace,
            body=deployment,
        )

    # Services

    async def create_service(self, namespace: str, service: client.V1Service) -> client.V1Service:
        return await self._call("create_service", self._core_v1.create_namespaced_service, namespace=namespace, body=service)

    async def get_service(self, namespace: str, name: str) -> client.V1Service:
        return await self._call("get_service", self._core_v1.read_namespaced_service, name=name, namespace=namespace)

    async def list_services(self, namespace: str = "") -> client.V1ServiceList:
        if namespace in ALL_NAMESPACES:
            return await self._call("list_services", self._core_v1.list_service_for_all_namespaces)
        return await self._call("list_services", self._core_v1.list_namespaced_service, namespace=namespace)

    async def delete_service(self, namespace: str, name: str) -> None:
        await self._call("delete_service", self._core_v1.delete_namespaced_service, name=name, namespace=namespace)
