from typing import Any, Optional


class RepositoryError(Exception):
    """Base class for every error raised by the data-access layer."""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.message = message
        self.operation = operation
        super().__init__(self.message)


class UserNotFoundError(RepositoryError):
    """Raised when a user id does not exist (or is soft-deleted) for a write."""

    def __init__(self, user_id: Any, operation: Optional[str] = None):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found", operation)


class DuplicateEmailError(RepositoryError):
    """Raised when the store rejects an email that is already registered."""

    def __init__(self, email: str, operation: Optional[str] = None):
        self.email = email
        super().__init__(f"Email '{email}' is already registered", operation)


class RoleNotFoundError(RepositoryError):
    """Raised when a role name has no matching row."""

    def __init__(self, role_name: str, operation: Optional[str] = None):
        self.role_name = role_name
        super().__init__(f"Role '{role_name}' not found", operation)


class InvalidFilterError(RepositoryError):
    """Listing parameters rejected before any query is executed."""
    pass


class InvalidSortFieldError(InvalidFilterError):
    def __init__(self, field: str, allowed):
        self.field = field
        super().__init__(f"Invalid sort field '{field}'. Allowed: {', '.join(allowed)}", "list_all_users")


class InvalidSortOrderError(InvalidFilterError):
    def __init__(self, order: str):
        self.order = order
        super().__init__(f"Invalid sort order '{order}'. Allowed: asc, desc", "list_all_users")


class StoreFailureError(RepositoryError):
    """Connectivity, protocol or constraint failure reported by the database."""

    def __init__(self, operation: str, reason: str):
        self.reason = reason
        super().__init__(f"Database failure during {operation}: {reason}", operation)


class OperationCanceledError(RepositoryError):
    """The operation was aborted before the store call completed."""
    pass


class DeadlineExceededError(OperationCanceledError):
    def __init__(self, operation: str, timeout: float):
        self.timeout = timeout
        super().__init__(f"{operation} exceeded its deadline of {timeout:.3f}s", operation)
