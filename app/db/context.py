"""
Task-local execution context for repository calls.

A transaction binds its session here; every repository operation resolves its
session from this context first and only falls back to the pool when nothing is
bound. Bindings live in ``contextvars``, so each asyncio task sees its own value
and concurrent requests never share a transaction by accident.

The same context carries an optional deadline that caps how long repository
calls made inside it may wait on the database.
"""

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass
from contextvars import ContextVar
from typing import Iterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class SessionBinding:
    """A transaction's session plus whether that transaction is still open."""
    session: AsyncSession
    active: bool = True


_binding: ContextVar[Optional[SessionBinding]] = ContextVar("session_binding", default=None)
# Absolute event-loop time
_deadline: ContextVar[Optional[float]] = ContextVar("deadline", default=None)


def get_binding() -> Optional[SessionBinding]:
    """
    Return the binding visible from the current task, if any.

    Tasks created inside a transaction inherit its binding; once the
    transaction scope exits, the shared binding reads as inactive for all of them.
    """
    return _binding.get()


def get_bound_session() -> Optional[AsyncSession]:
    """Return the session of the enclosing transaction while it is still open."""
    binding = _binding.get()
    if binding is None or not binding.active:
        return None
    return binding.session


@contextmanager
def bind_session(session: AsyncSession) -> Iterator[SessionBinding]:
    binding = SessionBinding(session)
    token = _binding.set(binding)
    try:
        yield binding
    finally:
        binding.active = False
        _binding.reset(token)


@contextmanager
def deadline(seconds: float) -> Iterator[None]:
    """
    Limit every repository call made inside the block to finish within ``seconds``
    of entering it. A nested deadline can only shorten the outer one.

    Example:
        with deadline(0.5):
            user = await repo.find_by_email("ana@example.com")
    """
    when = asyncio.get_running_loop().time() + seconds
    current = _deadline.get()
    if current is not None:
        when = min(when, current)
    token = _deadline.set(when)
    try:
        yield
    finally:
        _deadline.reset(token)


def remaining_time(default: Optional[float] = None) -> Optional[float]:
    """Seconds left before the scoped deadline, or ``default`` outside any deadline."""
    when = _deadline.get()
    if when is None:
        return default
    return max(when - asyncio.get_running_loop().time(), 0.0)
