from datetime import datetime
from typing import Optional

from app.core.schemas import BaseSchema


class RoleBase(BaseSchema):
    name: str
    description: Optional[str] = None


class Role(RoleBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
