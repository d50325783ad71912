"""Super-administrator provisioning job.

Creates the schema, seeds the module catalog and creates the first
super-administrator. This is the only code path that sets is_super_admin.

Run via: python -m condoauth.jobs.bootstrap_admin
"""

import asyncio

import structlog

from condoauth.adapters.auth import PostgresAuthRepository
from condoauth.adapters.db import AppDatabase
from condoauth.adapters.rbac import PostgresPermissionRepository
from condoauth.config import STORAGE_MEMORY, Settings
from condoauth.core.auth import AuthRepository, User
from condoauth.core.auth.password import hash_password
from condoauth.core.auth.service import normalize_email
from condoauth.core.rbac.catalog import seed_catalog

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 12


async def provision_super_admin(repo: AuthRepository, email: str, password: str) -> User:
    """Create a super-administrator, or return the existing account.

    An existing account with the same email is left unchanged.

    Raises:
        ValueError: If the password is too short.
    """
    email = normalize_email(email)
    existing = await repo.get_user_by_email(email)
    if existing is not None:
        logger.warning(
            "bootstrap_admin_exists",
            user_id=str(existing.id),
            is_super_admin=existing.is_super_admin,
        )
        return existing

    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    user = await repo.create_user(
        email=email,
        password_hash=hash_password(password),
        is_super_admin=True,
    )
    logger.info("bootstrap_admin_created", user_id=str(user.id))
    return user


async def main() -> None:
    """Run super-administrator provisioning."""
    settings = Settings()
    if settings.storage == STORAGE_MEMORY:
        logger.error("bootstrap_admin_requires_postgres")
        return
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        logger.error("BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD must be set")
        return

    db = AppDatabase(settings.database_url)
    await db.connect()
    try:
        await db.create_schema()
        await seed_catalog(PostgresPermissionRepository(db))
        await provision_super_admin(
            PostgresAuthRepository(db),
            settings.bootstrap_admin_email,
            settings.bootstrap_admin_password,
        )
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(main())
