import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.models import Role, ROLE_USER, ROLE_MODERATOR, ROLE_ADMIN
from app.db.statements import insert_ignore

logger = logging.getLogger(__name__)

DEFAULT_ROLES = [
    {"name": ROLE_USER, "description": "Standard user with basic permissions"},
    {"name": ROLE_MODERATOR, "description": "Moderator with extended permissions"},
    {"name": ROLE_ADMIN, "description": "Administrator with full system access"},
]


async def seed_roles(session: AsyncSession, roles=None) -> None:
    """Insert reference roles, leaving rows that already exist untouched."""
    dialect_name = session.get_bind().dialect.name
    for role in roles or DEFAULT_ROLES:
        await session.execute(insert_ignore(dialect_name, Role.__table__, role, ["name"]))
    await session.commit()
    logger.info(f"Seeded roles: {', '.join(r['name'] for r in roles or DEFAULT_ROLES)}")
