from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column, DeclarativeBase


# -----------------------------------------------------------
# Base Configuration (required for Alembic/SQLAlchemy 2.0)
# -----------------------------------------------------------
class Base(DeclarativeBase):
    """Declarative base shared by every table of the service."""


# SQLite only auto-increments INTEGER PRIMARY KEY columns
IdentityType = BigInteger().with_variant(Integer(), "sqlite")


class IdentityMixin:
    """Server-generated integer primary key."""

    id: Mapped[int] = mapped_column(IdentityType, primary_key=True, autoincrement=True)


class TimestampMixin:
    """created_at / updated_at columns filled in by the database."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
