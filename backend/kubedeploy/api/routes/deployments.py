from fastapi import APIRouter, Depends, Query

from kubedeploy.api.deps import cluster_error, get_gateway
from kubedeploy.schemas.common import ApiResponse
from kubedeploy.schemas.kubernetes import DeploymentCreateRequest, DeploymentResponse
from kubedeploy.services import mapper
from kubedeploy.services.kube_client import GatewayError, KubernetesGateway

router = APIRouter(prefix="/deployments", tags=["deployments"])


@router.post("", status_code=201, response_model=ApiResponse[DeploymentResponse], response_model_exclude_none=True, summary="Create a deployment")
async def create_deployment(body: DeploymentCreateRequest, gateway: KubernetesGateway = Depends(get_gateway)) -> ApiResponse[DeploymentResponse]:
    try:
        created = await gateway.create_deployment(body.namespace, mapper.build_deployment(body))
    except GatewayError as exc:
        raise cluster_error(exc, "create deployment") from exc
    return ApiResponse(message="Deployment created successfully", data=mapper.deployment_to_response(created))


@router.get("", response_model=ApiResponse[list[DeploymentResponse]], response_model_exclude_none=True, summary="List deployments")
async def list_deployments(
    namespace: str = Query(default="", description="Empty lists every namespace"),
    gateway: KubernetesGateway = Depends(get_gateway),
) -> ApiResponse[list[DeploymentResponse]]:
    try:
        deployments = await gateway.list_deployments(namespace)
    except GatewayError as exc:
        raise cluster_error(exc, "list deployments") from exc
    return ApiResponse(data=[mapper.deployment_to_response(d) for d in deployments.items or []])


@router.get("/{namespace}/{name}", response_model=ApiResponse[DeploymentResponse], response_model_exclude_none=True, summary="Get a deployment")
async def get_deployment(namespace: str, name: str, gateway: KubernetesGateway = Depends(get_gateway)) -> ApiResponse[DeploymentResponse]:
    try:
        deployment = await gateway.get_deployment(namespace, name)
    except GatewayError as exc:
        raise cluster_error(exc, "get deployment", kind="Deployment") from exc
    return ApiResponse(data=mapper.deployment_to_response(deployment))


@router.delete("/{namespace}/{name}", response_model=ApiResponse[None], response_model_exclude_none=True, summary="Delete a deployment")
async def delete_deployment(namespace: str, name: str, gateway: KubernetesGateway = Depends(get_gateway)) -> ApiResponse[None]:
    try:
        await gateway.delete_deployment(namespace, name)
    except GatewayError as exc:
        raise cluster_error(exc, "delete deployment", kind="Deployment") from exc
    return ApiResponse(message="Deployment deleted successfully")


@router.put("/{namespace}/{name}/scale", response_model=ApiResponse[DeploymentResponse], response_model_exclude_none=True, summary="Scale a deployment")
async def scale_deployment(
    namespace: str,
    name: str,
    replicas: int = Query(ge=0),
    gateway: KubernetesGateway = Depends(get_gateway),
) -> ApiResponse[DeploymentResponse]:
    try:
        scaled = await gateway.scale_deployment(namespace, name, replicas)
    except GatewayError as exc:
        raise cluster_error(exc, "scale deployment", kind="Deployment", conflict=True) from exc
    return ApiResponse(message=f"Deployment scaled to {replicas} replicas", data=mapper.deployment_to_response(scaled))
