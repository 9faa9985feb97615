from .base import Base, IdentityMixin, TimestampMixin
from .exceptions import (
    RepositoryError,
    UserNotFoundError,
    DuplicateEmailError,
    RoleNotFoundError,
    InvalidFilterError,
    InvalidSortFieldError,
    InvalidSortOrderError,
    StoreFailureError,
    OperationCanceledError,
    DeadlineExceededError,
)

__all__ = [
    "Base",
    "IdentityMixin",
    "TimestampMixin",
    "RepositoryError",
    "UserNotFoundError",
    "DuplicateEmailError",
    "RoleNotFoundError",
    "InvalidFilterError",
    "InvalidSortFieldError",
    "InvalidSortOrderError",
    "StoreFailureError",
    "OperationCanceledError",
    "DeadlineExceededError",
]
