"""Service wiring shared by the HTTP app, the gRPC server and the jobs."""

from dataclasses import dataclass

import structlog

from condoauth.adapters.audit import (
    AuthEventWriter,
    InMemoryAuthEventRepository,
    PostgresAuthEventRepository,
)
from condoauth.adapters.auth import InMemoryAuthRepository, PostgresAuthRepository
from condoauth.adapters.db import AppDatabase
from condoauth.adapters.rbac import InMemoryPermissionRepository, PostgresPermissionRepository
from condoauth.config import STORAGE_MEMORY, Settings
from condoauth.core.access import AccessEngine
from condoauth.core.auth import (
    AuthEventRepository,
    AuthenticationVerifier,
    AuthRepository,
    AuthService,
    SessionTokenIssuer,
    TokenSettings,
)
from condoauth.core.rbac import (
    PermissionAdminService,
    PermissionPoolResolver,
    PermissionRepository,
    ScopeResolver,
)
from condoauth.core.rbac.catalog import seed_catalog
from condoauth.jobs.bootstrap_admin import provision_super_admin

logger = structlog.get_logger()


@dataclass
class Services:
    """Every long-lived object of a running process."""

    users: AuthRepository
    permissions: PermissionRepository
    events: AuthEventRepository
    audit: AuthEventWriter
    issuer: SessionTokenIssuer
    engine: AccessEngine
    auth: AuthService
    admin: PermissionAdminService
    db: AppDatabase | None = None

    async def close(self) -> None:
        """Flush pending audit writes and release the database pool."""
        await self.audit.drain()
        if self.db is not None:
            await self.db.close()


def wire_services(
    users: AuthRepository,
    permissions: PermissionRepository,
    events: AuthEventRepository,
    tokens: TokenSettings,
    db: AppDatabase | None = None,
) -> Services:
    """Assemble the service graph over a set of repositories."""
    issuer = SessionTokenIssuer(users, tokens)
    verifier = AuthenticationVerifier(issuer, users)
    resolver = ScopeResolver(users, permissions, PermissionPoolResolver(permissions))
    audit = AuthEventWriter(events)
    return Services(
        users=users,
        permissions=permissions,
        events=events,
        audit=audit,
        issuer=issuer,
        engine=AccessEngine(verifier, resolver),
        auth=AuthService(users, issuer, audit),
        admin=PermissionAdminService(permissions, users),
        db=db,
    )


def build_memory_services(tokens: TokenSettings | None = None) -> Services:
    """Wire services over fresh in-memory repositories."""
    return wire_services(
        users=InMemoryAuthRepository(),
        permissions=InMemoryPermissionRepository(),
        events=InMemoryAuthEventRepository(),
        tokens=tokens or TokenSettings.from_env(),
    )


async def build_services(settings: Settings) -> Services:
    """Wire services for the configured storage backend.

    For PostgreSQL this connects the pool and, when AUTO_CREATE_SCHEMA is
    set, creates missing tables. In memory, the bootstrap super-administrator
    is provisioned when configured. The default
    module catalog is seeded in both cases.
    """
    if settings.storage == STORAGE_MEMORY:
        logger.warning("using_in_memory_storage")
        services = build_memory_services(settings.tokens)
        if settings.bootstrap_admin_email and settings.bootstrap_admin_password:
            await provision_super_admin(
                services.users,
                settings.bootstrap_admin_email,
                settings.bootstrap_admin_password,
            )
    else:
        db = AppDatabase(settings.database_url)
        await db.connect()
        if settings.auto_create_schema:
            await db.create_schema()
        services = wire_services(
            users=PostgresAuthRepository(db),
            permissions=PostgresPermissionRepository(db),
            events=PostgresAuthEventRepository(db),
            tokens=settings.tokens,
            db=db,
        )

    await seed_catalog(services.permissions)
    return services
