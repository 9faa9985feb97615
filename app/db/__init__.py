from .session import DatabaseManager, db_manager
from .context import SessionBinding, get_binding, get_bound_session, bind_session, deadline, remaining_time

__all__ = [
    "DatabaseManager",
    "db_manager",
    "SessionBinding",
    "get_binding",
    "get_bound_session",
    "bind_session",
    "deadline",
    "remaining_time",
]
