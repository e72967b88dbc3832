from fastapi import APIRouter, Depends

from kubedeploy.api.deps import cluster_error, get_gateway
from kubedeploy.schemas.common import ApiResponse
from kubedeploy.services import mapper
from kubedeploy.services.kube_client import GatewayError, KubernetesGateway

router = APIRouter(prefix="/namespaces", tags=["namespaces"])


@router.get("", response_model=ApiResponse[list[str]], response_model_exclude_none=True, summary="List namespace names")
async def list_namespaces(gateway: KubernetesGateway = Depends(get_gateway)) -> ApiResponse[list[str]]:
    try:
        namespaces = await gateway.list_namespaces()
    except GatewayError as exc:
        raise cluster_error(exc, "list namespaces") from exc
    return ApiResponse(data=mapper.namespace_names(namespaces))
