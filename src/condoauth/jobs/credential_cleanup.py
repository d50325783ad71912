"""Refresh credential cleanup job.

Run via: python -m condoauth.jobs.credential_cleanup
"""

import asyncio

import structlog

from condoauth.adapters.auth import PostgresAuthRepository
from condoauth.adapters.db import AppDatabase
from condoauth.config import STORAGE_MEMORY, Settings
from condoauth.core.auth import AuthRepository, SessionTokenIssuer

logger = structlog.get_logger()


async def purge_expired_credentials(repo: AuthRepository, settings: Settings) -> int:
    """Hard-delete every refresh credential past its expiry."""
    issuer = SessionTokenIssuer(repo, settings.tokens)
    count = await issuer.purge_expired()
    logger.info("expired_refresh_credentials_purged", count=count)
    return count


async def main() -> None:
    """Run refresh credential cleanup."""
    settings = Settings()
    if settings.storage == STORAGE_MEMORY:
        logger.error("credential_cleanup_requires_postgres")
        return

    db = AppDatabase(settings.database_url)
    await db.connect()
    try:
        await purge_expired_credentials(PostgresAuthRepository(db), settings)
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(main())
