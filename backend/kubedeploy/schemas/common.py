from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Uniform response envelope.

    Routes serialize it with ``response_model_exclude_none`` so absent keys are
    dropped; errors are produced by the exception handlers.
    """

    success: bool = True
    message: str | None = None
    data: T | None = None
    error: str | None = None


class HealthStatus(BaseModel):
    status: str
    database: str
    auth: str
