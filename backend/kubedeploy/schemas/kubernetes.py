from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ResourceRequests(BaseModel):
    cpu: str = ""
    memory: str = ""


class EnvVar(BaseModel):
    name: str = Field(min_length=1)
    value: str = ""


class ContainerPort(_CamelModel):
    name: str = ""
    container_port: int = Field(alias="containerPort", ge=1, le=65535)
    protocol: str = ""  # TCP, UDP, SCTP; empty means TCP


class VolumeSpec(_CamelModel):
    name: str = Field(min_length=1)
    mount_path: str = Field(alias="mountPath", min_length=1)
    # emptyDir, configMap, secret, persistentVolumeClaim; anything else mounts an empty source
    type: str = ""
    source: str = ""  # configMap, secret or PVC name


class PodCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    namespace: str = Field(min_length=1)
    image: str = Field(min_length=1)
    resources: ResourceRequests = Field(default_factory=ResourceRequests)
    ports: list[int | ContainerPort] = Field(default_factory=list)
    env: list[EnvVar] = Field(default_factory=list)
    command: list[str] = Field(default_factory=list)
    args: list[str] = Field(default_factory=list)


class DeploymentCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    namespace: str = Field(min_length=1)
    image: str = Field(min_length=1)
    replicas: int = Field(default=1, ge=0)
    resources: ResourceRequests = Field(default_factory=ResourceRequests)
    ports: list[ContainerPort] = Field(default_factory=list)
    env: list[EnvVar] = Field(default_factory=list)
    volumes: list[VolumeSpec] = Field(default_factory=list)
    command: list[str] = Field(default_factory=list)
    args: list[str] = Field(default_factory=list)


class ServicePort(_CamelModel):
    name: str = ""
    port: int = Field(ge=1, le=65535)
    target_port: int = Field(alias="targetPort", ge=0, le=65535)
    node_port: int = Field(default=0, alias="nodePort", ge=0)  # honoured for NodePort services only
    protocol: str = ""


class ServiceCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    namespace: str = Field(min_length=1)
    type: Literal["ClusterIP", "NodePort", "LoadBalancer"]
    selector: dict[str, str] = Field(min_length=1)
    ports: list[ServicePort] = Field(min_length=1)


class PodResponse(BaseModel):
    name: str
    namespace: str
    status: str
    phase: str
    created_at: str | None = None
    image: str
    restarts: int
    labels: dict[str, str] | None = None


class DeploymentResponse(_CamelModel):
    name: str
    namespace: str
    replicas: int
    available_replicas: int = Field(alias="availableReplicas")
    ready_replicas: int = Field(alias="readyReplicas")
    created_at: str | None = None
    image: str
    labels: dict[str, str] | None = None


class ServiceResponse(_CamelModel):
    name: str
    namespace: str
    type: str
    cluster_ip: str = Field(default="", alias="clusterIP")
    external_ip: str | None = Field(default=None, alias="externalIP")
    ports: list[ServicePort]
    created_at: str | None = None
    labels: dict[str, str] | None = None


class PodLogs(BaseModel):
    logs: str
