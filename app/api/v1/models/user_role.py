from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import mapped_column, Mapped

from app.core.models import Base
from app.core.models.base import IdentityType


class UserRole(Base):
    """
    Association table linking a User to a Role.
    At most one row exists per (user_id, role_id); concurrent assignments rely on it.
    """
    __tablename__ = "user_roles"

    # --- Composite Primary Keys ---
    user_id: Mapped[int] = mapped_column(
        IdentityType, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role_id: Mapped[int] = mapped_column(
        IdentityType, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    # Constraints
    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
    )

    def __repr__(self):
        return f"<UserRole(User ID='{self.user_id}', Role ID='{self.role_id}')>"
