from fastapi import APIRouter, Depends

from kubedeploy.api.routes import auth, deployments, health, namespaces, pods, services
from kubedeploy.core.auth import cluster_identity


def build_api_router(prefix: str = "/api") -> APIRouter:
    """Public router (auth, health) plus the cluster router.

    Whether the cluster router rejects anonymous callers is decided by the
    auth mode resolved at startup, not per route.
    """
    api_router = APIRouter(prefix=prefix)
    api_router.include_router(auth.router)
    api_router.include_router(health.router)

    cluster_router = APIRouter(dependencies=[Depends(cluster_identity)])
    cluster_router.include_router(pods.router)
    cluster_router.include_router(deployments.router)
    cluster_router.include_router(services.router)
    cluster_router.include_router(namespaces.router)

    api_router.include_router(cluster_router)
    return api_router
