import re

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.base import BaseResponseSchema
from app.models.user import Role
from typing import Dict, List, Optional
from datetime import datetime
import uuid


LOGIN_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
SPECIAL_CHARS = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?]""")


def validate_login_id(login_id: str) -> str:
    """Login ID: 6-12 characters, letters, digits and underscores only."""
    if len(login_id) < 6 or len(login_id) > 12:
        raise ValueError("Login ID must be between 6-12 characters")
    if not LOGIN_ID_PATTERN.match(login_id):
        raise ValueError("Login ID can only contain letters, numbers, and underscores")
    return login_id


def validate_password_strength(password: str) -> str:
    """Password: 8+ characters with an uppercase, a lowercase and a special character."""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not SPECIAL_CHARS.search(password):
        raise ValueError("Password must contain at least one special character")
    return password


class RegisterRequest(BaseModel):
    """Registration request schema."""
    login_id: str = Field(..., description="6-12 characters: letters, numbers, underscore")
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str
    role: Role = Role.WAREHOUSE_STAFF

    @field_validator("login_id")
    @classmethod
    def check_login_id(cls, v: str) -> str:
        return validate_login_id(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password_strength(v)


class LoginRequest(BaseModel):
    """Login request schema. login_id may also be the user's email."""
    login_id: str = Field(..., min_length=1, description="Login ID or email")
    password: str = Field(..., min_length=1, description="User password")


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""
    refresh_token: str = Field(..., description="JWT refresh token")


class UserResponse(BaseResponseSchema):
    """Authenticated user profile."""
    id: uuid.UUID
    login_id: str
    name: str
    email: str
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    """Token response schema."""
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration in seconds")
    user: Optional[UserResponse] = None


class LogoutRequest(BaseModel):
    """Logout request. Without a refresh token only the client forgets its tokens."""
    refresh_token: Optional[str] = None


class ProfileResponse(UserResponse):
    """Current user with the operations their role allows, per resource."""
    permissions: Dict[str, List[str]] = Field(default_factory=dict)
