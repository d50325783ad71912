"""Database adapters."""

from condoauth.adapters.db.app_db import AppDatabase

__all__ = ["AppDatabase"]
