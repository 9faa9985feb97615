from .roles import Role, ROLE_GUEST, ROLE_USER, ROLE_MODERATOR, ROLE_ADMIN
from .users import User
from .user_role import UserRole


__all__ = [
    "Role",
    "User",
    "UserRole",
    "ROLE_GUEST",
    "ROLE_USER",
    "ROLE_MODERATOR",
    "ROLE_ADMIN",
]
