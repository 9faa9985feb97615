"""
Pydantic schemas for the User entity.

`User` is the read model returned by the repository. Its role helpers only look
at the roles already loaded on the instance; they never go back to the database.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import Query
from pydantic import EmailStr, Field

from app.core.schemas import BaseSchema, BaseFilter
from app.api.v1.models.roles import ROLE_ADMIN
from app.api.v1.schemas.roles import Role


class UserBase(BaseSchema):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr


class UserCreate(UserBase):
    # Already hashed by the caller; this layer stores it as an opaque string
    password_hash: str = Field(min_length=1, repr=False)


class UserUpdate(UserBase):
    """Exactly the columns an update is allowed to write."""
    password_hash: str = Field(min_length=1, repr=False)


class User(BaseSchema):
    id: int
    name: str
    email: str
    password_hash: str = Field(exclude=True, repr=False)
    created_at: datetime
    updated_at: datetime
    roles: List[Role] = Field(default_factory=list)

    def has_role(self, role_name: str) -> bool:
        for role in self.roles:
            if role.name == role_name:
                return True
        return False

    def is_admin(self) -> bool:
        return self.has_role(ROLE_ADMIN)

    def role_names(self) -> List[str]:
        return [role.name for role in self.roles]


class UserFilter(BaseFilter):
    role: Optional[str] = None
    search: Optional[str] = None


def get_user_filter(
        role: Optional[str] = Query(None, description="Only users holding this role"),
        search: Optional[str] = Query(None, description="Substring of name or email"),
        sort: str = Query("created_at", description="name, email, created_at or updated_at"),
        order: str = Query("desc", description="asc or desc"),
        page: int = Query(1, ge=1),
        page_size: int = Query(20, ge=1, le=1000),
) -> UserFilter:
    return UserFilter(
        role=role or None,
        search=search or None,
        sort=sort,
        order=order,
        page=page,
        page_size=page_size,
    )
