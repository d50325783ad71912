"""Dependency injection and application lifespan management."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import Request

from condoauth.bootstrap import Services, build_services
from condoauth.config import Settings
from condoauth.core.access import AccessEngine
from condoauth.core.auth import AuthEventRepository, AuthService
from condoauth.core.rbac import PermissionAdminService

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    Services placed on app.state before startup are used as-is and left
    open on shutdown; otherwise they are built from the environment.
    """
    owned = getattr(app.state, "services", None) is None
    if owned:
        app.state.services = await build_services(Settings())

    yield

    if owned:
        services: Services = app.state.services
        await services.close()


def get_services(request: Request) -> Services:
    """Get the service graph from app state."""
    services: Services = request.app.state.services
    return services


def get_access_engine(request: Request) -> AccessEngine:
    """Get the access engine from app state."""
    return get_services(request).engine


def get_auth_service(request: Request) -> AuthService:
    """Get the session workflow service from app state."""
    return get_services(request).auth


def get_admin_service(request: Request) -> PermissionAdminService:
    """Get the permission administration service from app state."""
    return get_services(request).admin


def get_event_repository(request: Request) -> AuthEventRepository:
    """Get the auth event log repository from app state."""
    return get_services(request).events


def get_client_ip(request: Request) -> str | None:
    """Extract client IP from request.

    Args:
        request: FastAPI request object.

    Returns:
        Client IP address or None.
    """
    # Check X-Forwarded-For header first (for proxied requests)
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host

    return None


def get_user_agent(request: Request) -> str | None:
    """Get the client's user agent."""
    return request.headers.get("user-agent")
