from fastapi import APIRouter, Depends, Query

from kubedeploy.api.deps import cluster_error, get_gateway
from kubedeploy.schemas.common import ApiResponse
from kubedeploy.schemas.kubernetes import PodCreateRequest, PodLogs, PodResponse
from kubedeploy.services import mapper
from kubedeploy.services.kube_client import DEFAULT_TAIL_LINES, GatewayError, KubernetesGateway

router = APIRouter(prefix="/pods", tags=["pods"])


@router.post("", status_code=201, response_model=ApiResponse[PodResponse], response_model_exclude_none=True, summary="Create a pod")
async def create_pod(body: PodCreateRequest, gateway: KubernetesGateway = Depends(get_gateway)) -> ApiResponse[PodResponse]:
    try:
        created = await gateway.create_pod(body.namespace, mapper.build_pod(body))
    except GatewayError as exc:
        raise cluster_error(exc, "create pod") from exc
    return ApiResponse(message="Pod created successfully", data=mapper.pod_to_response(created))


@router.get("", response_model=ApiResponse[list[PodResponse]], response_model_exclude_none=True, summary="List pods")
async def list_pods(
    namespace: str = Query(default="", description="Empty lists every namespace"),
    gateway: KubernetesGateway = Depends(get_gateway),
) -> ApiResponse[list[PodResponse]]:
    try:
        pods = await gateway.list_pods(namespace)
    except GatewayError as exc:
        raise cluster_error(exc, "list pods") from exc
    return ApiResponse(data=[mapper.pod_to_response(p) for p in pods.items or []])


@router.get("/{namespace}/{name}", response_model=ApiResponse[PodResponse], response_model_exclude_none=True, summary="Get a pod")
async def get_pod(namespace: str, name: str, gateway: KubernetesGateway = Depends(get_gateway)) -> ApiResponse[PodResponse]:
    try:
        pod = await gateway.get_pod(namespace, name)
    except GatewayError as exc:
        raise cluster_error(exc, "get pod", kind="Pod") from exc
    return ApiResponse(data=mapper.pod_to_response(pod))


@router.delete("/{namespace}/{name}", response_model=ApiResponse[None], response_model_exclude_none=True, summary="Delete a pod")
async def delete_pod(namespace: str, name: str, gateway: KubernetesGateway = Depends(get_gateway)) -> ApiResponse[None]:
    try:
        await gateway.delete_pod(namespace, name)
    except GatewayError as exc:
        raise cluster_error(exc, "delete pod", kind="Pod") from exc
    return ApiResponse(message="Pod deleted successfully")


@router.get("/{namespace}/{name}/logs", response_model=ApiResponse[PodLogs], response_model_exclude_none=True, summary="Tail pod logs")
async def get_pod_logs(
    namespace: str,
    name: str,
    tail: int = Query(default=DEFAULT_TAIL_LINES, description="Lines from the end; 0 or less returns the whole log"),
    gateway: KubernetesGateway = Depends(get_gateway),
) -> ApiResponse[PodLogs]:
    try:
        logs = await gateway.get_pod_logs(namespace, name, tail_lines=tail)
    except GatewayError as exc:
        raise cluster_error(exc, "get pod logs", kind="Pod") from exc
    return ApiResponse(data=PodLogs(logs=logs))
