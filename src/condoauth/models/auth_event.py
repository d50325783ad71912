"""Append-only auth event log."""

from uuid import UUID

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from condoauth.models.base import BaseModel


class AuthEvent(BaseModel):
    """Auth event log entry.

    user_id is not a foreign key: failed logins for unknown emails are
    recorded too.
    """

    __tablename__ = "auth_events"

    event: Mapped[str] = mapped_column(String(20), nullable=False)  # LOGIN, REFRESH, ...
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    ip_address: Mapped[str | None] = mapped_column(String(45))
    user_agent: Mapped[str | None] = mapped_column(String(500))
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    fail_reason: Mapped[str | None] = mapped_column(String(255))
