from typing import Optional

from fastapi import APIRouter, BackgroundTasks, status

from app.api.deps import DB, CurrentContext, Permissions
from app.core.permissions import Resource
from app.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshTokenRequest,
    LogoutRequest,
    TokenResponse,
    UserResponse,
    ProfileResponse,
)
from app.schemas.base import ApiResponse
from app.services.auth_service import AuthService
from app.services.notification_service import schedule_notification, WELCOME

router = APIRouter(tags=["Authentication"])


@router.post(
    "/register",
    response_model=ApiResponse[TokenResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(data: RegisterRequest, background_tasks: BackgroundTasks, db: DB):
    """
    Register a new user and return access/refresh tokens.
    The welcome email goes out after the response.
    """
    user, access_token, refresh_token, expires_in = await AuthService(db).register_user(
        login_id=data.login_id,
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role,
    )
    schedule_notification(
        background_tasks, WELCOME, {"email": user.email, "name": user.name, "login_id": user.login_id}
    )
    return ApiResponse(
        message="User registered successfully",
        data=TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            expires_in=expires_in,
            user=UserResponse.model_validate(user),
        ),
    )


@router.post("/login", response_model=ApiResponse[TokenResponse])
async def login(data: LoginRequest, db: DB):
    """
    Authenticate user and return access/refresh tokens.
    """
    user, access_token, refresh_token, expires_in = await AuthService(db).login(
        data.login_id, data.password
    )
    return ApiResponse(
        message="Login successful",
        data=TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            expires_in=expires_in,
            user=UserResponse.model_validate(user),
        ),
    )


@router.post("/refresh", response_model=ApiResponse[TokenResponse])
async def refresh_token(data: RefreshTokenRequest, db: DB):
    """
    Refresh access token using a valid refresh token.
    The presented refresh token is revoked.
    """
    access_token, new_refresh_token, expires_in = await AuthService(db).refresh_tokens(
        data.refresh_token
    )
    return ApiResponse(
        data=TokenResponse(
            access_token=access_token,
            refresh_token=new_refresh_token,
            token_type="bearer",
            expires_in=expires_in,
        ),
    )


@router.post("/logout", response_model=ApiResponse[None])
async def logout(ctx: CurrentContext, db: DB, data: Optional[LogoutRequest] = None):
    """
    Logout current user.
    Revokes the given refresh token; the access token expires on its own.
    """
    await AuthService(db).logout(ctx, data.refresh_token if data else None)
    return ApiResponse(message="Logged out successfully")


@router.post("/logout-all", response_model=ApiResponse[None])
async def logout_all(ctx: CurrentContext, db: DB):
    """Revoke every refresh token of the current user."""
    revoked = await AuthService(db).logout_all(ctx)
    return ApiResponse(message=f"Logged out from {revoked} session(s)")


@router.get("/me", response_model=ApiResponse[ProfileResponse])
async def get_current_user_info(ctx: CurrentContext, permissions: Permissions, db: DB):
    """
    Get current authenticated user's profile with permissions.
    """
    user = await AuthService(db).get_user(ctx.user_id)
    profile = ProfileResponse.model_validate(user).model_copy(
        update={
            "permissions": {
                resource.value: [op.value for op in permissions.allowed_operations(resource)]
                for resource in Resource
            }
        }
    )
    return ApiResponse(data=profile)
