from .roles import RoleBase, Role
from .users import UserBase, UserCreate, UserUpdate, User, UserFilter, get_user_filter

__all__ = [
    "RoleBase",
    "Role",
    "UserBase",
    "UserCreate",
    "UserUpdate",
    "User",
    "UserFilter",
    "get_user_filter",
]
