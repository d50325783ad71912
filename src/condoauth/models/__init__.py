"""SQLAlchemy models for the authorization database."""

from condoauth.models.auth_event import AuthEvent
from condoauth.models.base import BaseModel, metadata
from condoauth.models.permission import (
    Module,
    ModuleCapability,
    UserCapabilityGrant,
    UserModuleGrant,
)
from condoauth.models.pool import Pool, PoolCapabilityGrant, PoolMember, PoolModuleGrant
from condoauth.models.refresh_credential import RefreshCredential
from condoauth.models.user import User

__all__ = [
    "AuthEvent",
    "BaseModel",
    "Module",
    "ModuleCapability",
    "Pool",
    "PoolCapabilityGrant",
    "PoolMember",
    "PoolModuleGrant",
    "RefreshCredential",
    "User",
    "UserCapabilityGrant",
    "UserModuleGrant",
    "metadata",
]
