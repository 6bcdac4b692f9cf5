from typing import Annotated, Optional
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.permissions import Operation, PermissionChecker, Resource
from app.core.request_context import RequestContext
from app.core.security import authenticate


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme. Missing credentials are reported through
# AuthenticationError so they get the standard error envelope.
security = HTTPBearer(auto_error=False)


async def get_current_context(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> RequestContext:
    """
    Dependency to get the caller's RequestContext from the bearer token.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized, no token")
    return authenticate(credentials.credentials)


async def get_permission_checker(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
) -> PermissionChecker:
    return PermissionChecker(ctx.role)


def require_permission(resource: Resource, operation: Operation):
    """
    Dependency factory gating an endpoint on the access policy.

    Resolves to the caller's RequestContext, so endpoints can take it directly.

    Usage:
        @router.put("/{id}/validate")
        async def validate_receipt(
            ctx: Annotated[RequestContext, Depends(require_permission(Resource.RECEIPTS, Operation.VALIDATE))],
        ):
            ...
    """
    async def permission_dependency(
        ctx: Annotated[RequestContext, Depends(get_current_context)],
    ) -> RequestContext:
        if not PermissionChecker(ctx.role).can(resource, operation):
            logger.info(f"User {ctx.user_id} ({ctx.role.value}) denied {operation.value} on {resource.value}")
            raise AuthorizationError(
                f"User role {ctx.role.value} is not authorized to access this route"
            )
        return ctx

    return permission_dependency


# Type aliases for cleaner endpoint signatures
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentContext = Annotated[RequestContext, Depends(get_current_context)]
Permissions = Annotated[PermissionChecker, Depends(get_permission_checker)]
