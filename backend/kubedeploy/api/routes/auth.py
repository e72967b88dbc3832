from __future__ import annotations

from fastapi import APIRouter, Depends

from kubedeploy.api.deps import get_auth_service
from kubedeploy.core.auth import require_identity
from kubedeploy.core.security import TokenClaims
from kubedeploy.exceptions import NotFoundException
from kubedeploy.schemas.auth import LoginRequest, LoginResponse, SignupRequest, UserInfo
from kubedeploy.schemas.common import ApiResponse
from kubedeploy.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", status_code=201, response_model=ApiResponse[LoginResponse], response_model_exclude_none=True)
async def signup(body: SignupRequest, service: AuthService = Depends(get_auth_service)) -> ApiResponse[LoginResponse]:
    token, user = await service.signup(body)
    return ApiResponse(message="User created successfully", data=LoginResponse(token=token, user=UserInfo.model_validate(user)))


@router.post("/login", response_model=ApiResponse[LoginResponse], response_model_exclude_none=True)
async def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)) -> ApiResponse[LoginResponse]:
    token, user = await service.login(str(body.email), body.password)
    return ApiResponse(message="Login successful", data=LoginResponse(token=token, user=UserInfo.model_validate(user)))


@router.get("/me", response_model=ApiResponse[UserInfo], response_model_exclude_none=True)
async def whoami(
    claims: TokenClaims = Depends(require_identity),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[UserInfo]:
    user = await service.get_user(claims.user_id)
    if user is None:
        raise NotFoundException("User not found")
    return ApiResponse(data=UserInfo.model_validate(user))
