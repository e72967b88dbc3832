import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from kubedeploy import __version__
from kubedeploy.api.router import build_api_router
from kubedeploy.config import Settings, get_settings
from kubedeploy.core.auth import resolve_auth_mode
from kubedeploy.core.logging import get_logger, setup_logging
from kubedeploy.core.request_context import request_id_var
from kubedeploy.db import connect_database
from kubedeploy.exceptions import register_exception_handlers
from kubedeploy.services.auth import AuthService
from kubedeploy.services.kube_client import KubernetesGateway

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, gateway: Optional[KubernetesGateway] = None) -> FastAPI:
    """Build the application.

    ``gateway`` replaces the cluster client built from kubeconfig; the
    database is always connected from ``settings.database_url``.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # a cluster that cannot be configured or reached is fatal
        app.state.gateway = gateway or KubernetesGateway.from_kubeconfig(
            settings.kube_config_path,
            settings.kube_context,
            timeout=settings.kube_request_timeout,
        )
        await app.state.gateway.ping()
        logger.info("kubernetes.connected")

        database = await connect_database(settings.database_url, echo=settings.is_debug and settings.log_level.upper() == "DEBUG")
        if database is not None and settings.seed_demo_users:
            try:
                await AuthService(database.session_factory, settings).seed_demo_users()
            except SQLAlchemyError as exc:
                logger.warning("database.seed_failed", error=str(exc))
        app.state.database = database

        app.state.auth_mode = resolve_auth_mode(settings.auth_mode, database is not None)
        logger.info("app.started", auth=app.state.auth_mode.value, database=database is not None, env=settings.app_env)

        yield

        logger.info("app.stopping")
        if database is not None:
            await database.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="REST facade for deploying pods, deployments and services to Kubernetes",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = None

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(build_api_router(settings.api_prefix))
    return app
