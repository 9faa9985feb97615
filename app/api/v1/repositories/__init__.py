from .user_repository import UserRepository, get_user_repository, store_operation

__all__ = [
    "UserRepository",
    "get_user_repository",
    "store_operation",
]
