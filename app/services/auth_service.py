from datetime import datetime, timezone
from typing import Optional, Tuple
import logging
import uuid

from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, RefreshToken, Role
from app.core.exceptions import AuthenticationError, BusinessRuleViolation, NotFoundError
from app.core.request_context import RequestContext
from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    verify_refresh_token,
)
from app.config import settings


logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service for user registration, login and token management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_user(
        self,
        login_id: str,
        name: str,
        email: str,
        password: str,
        role: Role = Role.WAREHOUSE_STAFF,
    ) -> Tuple[User, str, str, int]:
        """
        Register a new user and sign them in.

        Returns:
            Tuple of (user, access_token, refresh_token, expires_in_seconds)

        Raises:
            BusinessRuleViolation: email or login ID already taken
        """
        email = email.lower()
        result = await self.db.execute(
            select(User).where(or_(User.email == email, User.login_id == login_id))
        )
        existing = result.scalars().first()
        if existing:
            if existing.email == email:
                raise BusinessRuleViolation("Email already registered")
            raise BusinessRuleViolation("Login ID already taken")

        user = User(
            login_id=login_id,
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            role=Role(role).value,
        )
        self.db.add(user)
        await self.db.flush()

        access_token, refresh_token, expires_in = await self.create_tokens(user)
        logger.info(f"Registered user {login_id} ({user.role})")

        return user, access_token, refresh_token, expires_in

    async def authenticate_user(self, login_id: str, password: str) -> User:
        """
        Authenticate a user by login ID (or email) and password.

        Raises:
            AuthenticationError: unknown user, inactive user or wrong password
        """
        result = await self.db.execute(
            select(User).where(or_(User.login_id == login_id, User.email == login_id.lower()))
        )
        user = result.scalars().first()

        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            logger.info(f"Failed login attempt for {login_id}")
            raise AuthenticationError("Invalid Login ID or Password")

        return user

    async def create_tokens(self, user: User) -> Tuple[str, str, int]:
        """
        Create access and refresh tokens for a user.

        The refresh token's jti is stored so it can be revoked later.

        Returns:
            Tuple of (access_token, refresh_token, expires_in_seconds)
        """
        access_token = create_access_token(subject=user.id, role=user.role)
        refresh_token, jti, expires_at = create_refresh_token(subject=user.id)

        self.db.add(RefreshToken(user_id=user.id, jti=jti, expires_at=expires_at))
        user.last_login_at = datetime.now(timezone.utc)
        await self.db.commit()

        expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        return access_token, refresh_token, expires_in

    async def login(self, login_id: str, password: str) -> Tuple[User, str, str, int]:
        user = await self.authenticate_user(login_id, password)
        access_token, refresh_token, expires_in = await self.create_tokens(user)
        logger.info(f"User {user.login_id} logged in")
        return user, access_token, refresh_token, expires_in

    async def refresh_tokens(self, refresh_token: str) -> Tuple[str, str, int]:
        """
        Exchange a stored refresh token for a new token pair.

        The presented token is revoked (rotation), so each refresh token works once.

        Raises:
            AuthenticationError: token invalid, expired, revoked, or user inactive
        """
        payload = verify_refresh_token(refresh_token)
        if payload is None:
            raise AuthenticationError("Invalid refresh token")

        result = await self.db.execute(
            select(RefreshToken).where(RefreshToken.jti == payload.get("jti"))
        )
        stored = result.scalar_one_or_none()
        if stored is None or str(stored.user_id) != payload.get("sub"):
            raise AuthenticationError("Invalid refresh token")

        user = await self.db.get(User, stored.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid refresh token")

        await self.db.delete(stored)
        return await self.create_tokens(user)

    async def logout(self, ctx: RequestContext, refresh_token: Optional[str] = None) -> None:
        """Revoke one refresh token of the caller. Without a token this is a no-op."""
        if not refresh_token:
            return
        payload = verify_refresh_token(refresh_token)
        if payload is None:
            return

        await self.db.execute(
            delete(RefreshToken).where(
                RefreshToken.user_id == ctx.user_id,
                RefreshToken.jti == payload.get("jti"),
            )
        )
        await self.db.commit()

    async def logout_all(self, ctx: RequestContext) -> int:
        """Revoke every refresh token of the caller. Returns how many were revoked."""
        result = await self.db.execute(
            delete(RefreshToken).where(RefreshToken.user_id == ctx.user_id)
        )
        await self.db.commit()
        logger.info(f"Revoked {result.rowcount} refresh tokens for user {ctx.user_id}")
        return result.rowcount

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
