"""Permission pool models."""

from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String, Text, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column

from condoauth.models.base import BaseModel
from condoauth.models.permission import SCOPE_CHECK


class Pool(BaseModel):
    """A named group of users sharing module and capability grants."""

    __tablename__ = "pools"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    created_by: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))


class PoolMember(BaseModel):
    """Membership of a user in a pool. created_at is the added-at time."""

    __tablename__ = "pool_members"

    pool_id: Mapped[UUID] = mapped_column(
        ForeignKey("pools.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    added_by: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))

    __table_args__ = (UniqueConstraint("pool_id", "user_id"),)


class PoolModuleGrant(BaseModel):
    """Coarse module access for every member of a pool."""

    __tablename__ = "pool_module_grants"

    pool_id: Mapped[UUID] = mapped_column(
        ForeignKey("pools.id", ondelete="CASCADE"), nullable=False
    )
    module_id: Mapped[UUID] = mapped_column(
        ForeignKey("modules.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (UniqueConstraint("pool_id", "module_id"),)


class PoolCapabilityGrant(BaseModel):
    """A scoped capability for every member of a pool."""

    __tablename__ = "pool_capability_grants"

    pool_id: Mapped[UUID] = mapped_column(
        ForeignKey("pools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    capability_id: Mapped[UUID] = mapped_column(
        ForeignKey("module_capabilities.id", ondelete="CASCADE"), nullable=False
    )
    scope: Mapped[str] = mapped_column(String(20), nullable=False)
    scope_id: Mapped[str | None] = mapped_column(String(100))

    __table_args__ = (CheckConstraint(SCOPE_CHECK, name="scope_id_matches_scope"),)
