"""Auth API router: register, login, admin login, refresh, own profile.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from config.settings import settings
from src.sf_common.response import ApiResponse, respond
from src.sf_gateway.auth.dependencies import get_current_user
from src.sf_gateway.user.models import User
from src.sf_gateway.user.schemas import (
    AdminLoginRequest,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UpdateProfileRequest,
    UserInfo,
)
from src.sf_gateway.user.service import UserService
from src.sf_store.application.service import get_store
from src.sf_store.domain.repository import KeyValueStoreProtocol

router = APIRouter(prefix="/auth", tags=["auth"])

_EXPIRES_IN = settings.JWT_EXPIRE_MINUTES * 60


async def get_user_service(
    store: Annotated[KeyValueStoreProtocol, Depends(get_store)],
) -> UserService:
    return UserService(store)


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="Customer registration",
)
async def register(
    request: Request,
    body: RegisterRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse:
    user = await service.register(body.username, body.email, body.password)
    return respond(request, UserInfo.from_domain(user).model_dump(), "User registered successfully")


@router.post("/login", response_model=ApiResponse, summary="Customer login")
async def login(
    request: Request,
    body: LoginRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse:
    user, access_token, refresh_token = await service.login(body.email, body.password)
    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=_EXPIRES_IN,
        user=UserInfo.from_domain(user),
    )
    return respond(request, data.model_dump(), "Login successful")


@router.post("/admin-login", response_model=ApiResponse, summary="Admin login")
async def admin_login(
    request: Request,
    body: AdminLoginRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse:
    access_token, refresh_token = await service.admin_login(body.password)
    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=_EXPIRES_IN,
    )
    return respond(request, data.model_dump(), "Login successful")


@router.post("/refresh", response_model=ApiResponse, summary="Refresh access token")
async def refresh_token(
    request: Request,
    body: RefreshRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse:
    new_access_token = await service.refresh(body.refresh_token)
    data = RefreshResponse(access_token=new_access_token, expires_in=_EXPIRES_IN)
    return respond(request, data.model_dump(), "Token refreshed")


@router.get("/me", response_model=ApiResponse, summary="Current customer profile")
async def get_me(
    request: Request,
    user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse:
    return respond(request, UserInfo.from_domain(user).model_dump())


@router.patch("/me", response_model=ApiResponse, summary="Update own profile")
async def update_me(
    request: Request,
    body: UpdateProfileRequest,
    user: Annotated[User, Depends(get_current_user)],
    service: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse:
    updated = await service.update_profile(user.id, body.username, body.profile_picture)
    return respond(request, UserInfo.from_domain(updated).model_dump(), "Profile updated")
