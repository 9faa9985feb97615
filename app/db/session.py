import logging
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
    AsyncEngine,
)

from app.core.config import settings
from app.core.models import Base

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# 1. Database Manager Class
# ----------------------------------------------------------------------

class DatabaseManager:
    """
    Manages the SQLAlchemy AsyncEngine and the AsyncSession factory.

    The engine owns the connection pool shared by every repository call. A
    transaction claims one pooled connection through its session until it
    commits or rolls back.
    """

    def __init__(self, db_url: str, echo: Optional[bool] = None):
        """
        Initializes the DatabaseManager with the database connection URL.

        Args:
            db_url (str): The connection string for the asynchronous database driver.
            echo (bool): Log generated SQL. Defaults to settings.DB_ECHO.
        """
        self._is_sqlite = db_url.startswith("sqlite")

        engine_kwargs = {
            # Checks connection validity on pool checkout.
            "pool_pre_ping": True,
            "echo": settings.DB_ECHO if echo is None else echo,
        }
        if not self._is_sqlite:
            engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
            engine_kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW

        self._engine: AsyncEngine = create_async_engine(db_url, **engine_kwargs)

        if self._is_sqlite:
            # SQLite leaves foreign keys off unless asked on every connection
            @event.listens_for(self._engine.sync_engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        self._async_session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            class_=AsyncSession,
            expire_on_commit=False,  # Prevents unnecessary loading of objects after a commit.
            autoflush=False,
            bind=self._engine,
        )

    @property
    def engine(self) -> AsyncEngine:
        """
        Provides access to the configured SQLAlchemy AsyncEngine.

        Returns:
            AsyncEngine: The configured engine instance.
        """
        return self._engine

    @property
    def async_session_factory(self) -> async_sessionmaker[AsyncSession]:
        """
        Provides access to the configured asynchronous session maker.

        Returns:
            async_sessionmaker[AsyncSession]: The session factory.
        """
        return self._async_session_factory

    async def create_all(self) -> None:
        """Create missing tables. Development and tests only; production runs migrations."""
        # Registers every table on Base.metadata
        from app.api.v1 import models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created.")

    async def disconnect(self) -> None:
        """Close every pooled connection."""
        await self._engine.dispose()


# Initialize the DatabaseManager with the URL from settings
db_manager = DatabaseManager(settings.ASYNC_DATABASE_URL)
