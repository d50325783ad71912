"""Application settings loaded from environment."""

import os

from condoauth.core.auth.jwt import TokenSettings

STORAGE_POSTGRES = "postgres"
STORAGE_MEMORY = "memory"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.database_url = os.getenv("DATABASE_URL", "postgresql://localhost:5432/condoauth")
        self.storage = os.getenv("CONDOAUTH_STORAGE", STORAGE_POSTGRES).lower()
        if self.storage not in (STORAGE_POSTGRES, STORAGE_MEMORY):
            raise ValueError(f"Unsupported CONDOAUTH_STORAGE: {self.storage}")

        self.tokens = TokenSettings.from_env()

        self.grpc_port = int(os.getenv("GRPC_PORT", "50051"))
        self.auto_create_schema = _env_flag("AUTO_CREATE_SCHEMA")

        # Only read by the bootstrap_admin job
        self.bootstrap_admin_email = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
        self.bootstrap_admin_password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")
