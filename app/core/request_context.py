"""Explicit caller identity handed to every service operation."""
from dataclasses import dataclass
import uuid

from app.models.user import Role


@dataclass(frozen=True)
class RequestContext:
    """
    Who is performing an operation.

    Built once per request from the bearer token and passed down explicitly;
    services use it to stamp created_by / last_updated_by.
    """
    user_id: uuid.UUID
    role: Role
