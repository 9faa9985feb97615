from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.models import Base, IdentityMixin, TimestampMixin


class User(IdentityMixin, TimestampMixin, Base):
    """Core application user model."""
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # Soft delete marker: the row stays, default reads skip it
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Read-only view over user_roles; written only through role assignment
    roles: Mapped[List["Role"]] = relationship(
        secondary="user_roles",
        viewonly=True,
        lazy="raise",
        order_by="Role.name",
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"
