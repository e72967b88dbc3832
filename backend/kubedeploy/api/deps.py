from __future__ import annotations

from fastapi import Depends, Request

from kubedeploy.db import Database
from kubedeploy.exceptions import AppException, DatabaseUnavailableError, NotFoundException
from kubedeploy.services.auth import AuthService
from kubedeploy.services.kube_client import ConflictError, GatewayError, KubernetesGateway, NotFoundError


def get_gateway(request: Request) -> KubernetesGateway:
    return request.app.state.gateway


def get_database(request: Request) -> Database:
    database: Database | None = request.app.state.database
    if database is None:
        raise DatabaseUnavailableError()
    return database


def get_auth_service(request: Request, database: Database = Depends(get_database)) -> AuthService:
    return AuthService(database.session_factory, request.app.state.settings)
def cluster_error(exc: GatewayError, action: str, kind: str | None = None, conflict: bool = False) -> AppException:
    """Translate a gateway failure into the HTTP error for ``action``.

    ``kind`` is given only where a missing object is the caller's problem
    (reads, deletes, scale, logs); creates and lists report it as a failure.
    ``conflict`` marks the one write where a lost update is reported as 409
    (scale); a create hitting an existing object is a plain 500.
    """
    if kind and isinstance(exc, NotFoundError):
        return NotFoundException(f"{kind} not found: {exc.cause}")
    if conflict and isinstance(exc, ConflictError):
        return AppException(f"Failed to {action}: {exc.cause}", status_code=409)
    return AppException(f"Failed to {action}: {exc.cause}", status_code=500)
