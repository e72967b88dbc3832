"""
Security utilities for KubeDeploy.

Password hashing and JWT access tokens.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from kubedeploy.config import Settings, get_settings


# Fixed bcrypt cost; verify() compares in constant time
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be decoded, is expired or lacks claims."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    username: str
    role: str
    expires_at: datetime


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a bcrypt hash.

    Malformed hashes count as a mismatch.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    user_id: int,
    email: str,
    username: str,
    role: str,
    *,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Create a signed JWT access token.

    Args:
        user_id: database id of the user, also stored as ``sub``
        email: user email
        username: user name
        role: ``user`` or ``admin``
        expires_delta: token lifetime, defaults to ``jwt_expiration_hours``

    Returns:
        str: encoded JWT
    """
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else timedelta(hours=settings.jwt_expiration_hours))
    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "user_id": user_id,
        "email": email,
        "username": username,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> TokenClaims:
    """Validate signature and expiry and return the token claims."""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise InvalidTokenError("Token has expired") from exc
    except JWTError as exc:
        raise InvalidTokenError("Invalid token") from exc

    try:
        return TokenClaims(
            user_id=int(payload["user_id"]),
            email=str(payload["email"]),
            username=str(payload["username"]),
            role=str(payload.get("role") or "user"),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError("Invalid token claims") from exc
