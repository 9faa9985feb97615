from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import mapped_column, Mapped

from app.core.models import Base, IdentityMixin, TimestampMixin

ROLE_GUEST = "guest"
ROLE_USER = "user"
ROLE_MODERATOR = "moderator"
ROLE_ADMIN = "admin"


class Role(IdentityMixin, TimestampMixin, Base):
    """Reference data: roles are seeded out of band and never mutated here."""
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self):
        return f"<Role(name='{self.name}')>"
