from __future__ import annotations

from enum import Enum

from fastapi import Request

from kubedeploy.config import Settings
from kubedeploy.core.security import InvalidTokenError, TokenClaims, decode_access_token
from kubedeploy.exceptions import AuthenticationError


class AuthMode(str, Enum):
    ENFORCED = "enforced"
    DISABLED = "disabled"


def resolve_auth_mode(setting: str, database_available: bool) -> AuthMode:
    """Pick the mode once at startup; ``auto`` follows the database."""
    if setting == AuthMode.ENFORCED.value:
        return AuthMode.ENFORCED
    if setting == AuthMode.DISABLED.value:
        return AuthMode.DISABLED
    return AuthMode.ENFORCED if database_available else AuthMode.DISABLED


def _bearer_token(request: Request) -> str:
    # Accept: Authorization: Bearer <token>
    authz = request.headers.get("Authorization")
    if not authz:
        raise AuthenticationError("Authorization header required")
    scheme, _, token = authz.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Invalid authorization header format")
    return token


def _settings(request: Request) -> Settings:
    return request.app.state.settings


async def require_identity(request: Request) -> TokenClaims:
    token = _bearer_token(request)
    try:
        claims = decode_access_token(token, _settings(request))
    except InvalidTokenError as exc:
        raise AuthenticationError(str(exc)) from exc
    request.state.identity = claims
    return claims


async def optional_identity(request: Request) -> TokenClaims | None:
    """Attach the identity when a valid token is sent; never rejects."""
    try:
        return await require_identity(request)
    except AuthenticationError:
        return None


async def cluster_identity(request: Request) -> TokenClaims | None:
    if request.app.state.auth_mode is AuthMode.ENFORCED:
        return await require_identity(request)
    return await optional_identity(request)
