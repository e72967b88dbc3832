from fastapi import APIRouter, Depends, Query

from kubedeploy.api.deps import cluster_error, get_gateway
from kubedeploy.schemas.common import ApiResponse
from kubedeploy.schemas.kubernetes import ServiceCreateRequest, ServiceResponse
from kubedeploy.services import mapper
from kubedeploy.services.kube_client import GatewayError, KubernetesGateway

router = APIRouter(prefix="/services", tags=["services"])


@router.post("", status_code=201, response_model=ApiResponse[ServiceResponse], response_model_exclude_none=True, summary="Create a service")
async def create_service(body: ServiceCreateRequest, gateway: KubernetesGateway = Depends(get_gateway)) -> ApiResponse[ServiceResponse]:
    try:
        created = await gateway.create_service(body.namespace, mapper.build_service(body))
    except GatewayError as exc:
        raise cluster_error(exc, "create service") from exc
    return ApiResponse(message="Service created successfully", data=mapper.service_to_response(created))


@router.get("", response_model=ApiResponse[list[ServiceResponse]], response_model_exclude_none=True, summary="List services")
async def list_services(
    namespace: str = Query(default="", description="Empty lists every namespace"),
    gateway: KubernetesGateway = Depends(get_gateway),
) -> ApiResponse[list[ServiceResponse]]:
    try:
        services = await gateway.list_services(namespace)
    except GatewayError as exc:
        raise cluster_error(exc, "list services") from exc
    return ApiResponse(data=[mapper.service_to_response(s) for s in services.items or []])


@router.get("/{namespace}/{name}", response_model=ApiResponse[ServiceResponse], response_model_exclude_none=True, summary="Get a service")
async def get_service(namespace: str, name: str, gateway: KubernetesGateway = Depends(get_gateway)) -> ApiResponse[ServiceResponse]:
    try:
        service = await gateway.get_service(namespace, name)
    except GatewayError as exc:
        raise cluster_error(exc, "get service", kind="Service") from exc
    return ApiResponse(data=mapper.service_to_response(service))


@router.delete("/{namespace}/{name}", response_model=ApiResponse[None], response_model_exclude_none=True, summary="Delete a service")
async def delete_service(namespace: str, name: str, gateway: KubernetesGateway = Depends(get_gateway)) -> ApiResponse[None]:
    try:
        await gateway.delete_service(namespace, name)
    except GatewayError as exc:
        raise cluster_error(exc, "delete service", kind="Service") from exc
    return ApiResponse(message="Service deleted successfully")
