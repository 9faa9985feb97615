import asyncio
import functools
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Awaitable, Callable, List, Optional, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.api.v1.models import User as UserModel, Role as RoleModel, UserRole as UserRoleModel
from app.api.v1.schemas import User, UserCreate, UserUpdate, UserFilter, Role
from app.core.config import settings
from app.core.helpers.filter_helper import build_user_listing, paginate
from app.core.models import (
    DeadlineExceededError,
    DuplicateEmailError,
    RoleNotFoundError,
    StoreFailureError,
    UserNotFoundError,
)
from app.core.schemas import PaginatedResponse
from app.db.context import bind_session, get_binding, remaining_time
from app.db.session import db_manager
from app.db.statements import insert_ignore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def store_operation(name: str):
    """
    Wrap a repository coroutine with the per-call deadline and store error translation.

    - TimeoutError (deadline reached, or a driver timeout) becomes DeadlineExceededError.
    - Any other SQLAlchemyError becomes StoreFailureError naming the operation only.
    - Repository errors and asyncio.CancelledError pass through untouched.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            timeout = remaining_time(self.statement_timeout)
            try:
                async with asyncio.timeout(timeout):
                    return await func(self, *args, **kwargs)
            except TimeoutError as e:
                logger.warning(f"{name} exceeded its deadline of {timeout}s")
                raise DeadlineExceededError(name, timeout or 0.0) from e
            except SQLAlchemyError as e:
                logger.error(f"Database failure during {name}: {e.__class__.__name__}", exc_info=True)
                raise StoreFailureError(name, e.__class__.__name__) from e
        return wrapper
    return decorator


def _is_email_violation(error: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed: users.email"; postgres names uq_users_email
    return "email" in str(error.orig).lower()


class UserRepository:
    """
    Data access for users, roles and their assignments.

    Every operation runs on the session bound by an enclosing `transaction()`
    when there is one, otherwise on its own pooled session that commits on
    success and rolls back on error.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], statement_timeout: Optional[float] = None):
        self._session_factory = session_factory
        if statement_timeout is None:
            statement_timeout = settings.DB_COMMAND_TIMEOUT_SECONDS
        # 0 or negative disables the default deadline
        self.statement_timeout = statement_timeout if statement_timeout and statement_timeout > 0 else None

    def _bound_session(self) -> Optional[AsyncSession]:
        """
        Session of the enclosing transaction, or None outside any transaction.

        A task spawned inside a transaction keeps seeing its binding after the
        transaction has finished; such late calls are refused instead of running
        on a session nobody will commit.
        """
        binding = get_binding()
        if binding is None:
            return None
        if not binding.active:
            logger.error("Repository call made after its enclosing transaction finished")
            raise StoreFailureError("transaction", "closed")
        return binding.session

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        bound = self._bound_session()
        if bound is not None:
            yield bound
            return

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def _build_user_query_with_relationships(self):
        """Active (not soft-deleted) users with their roles loaded fresh from user_roles."""
        return (
            select(UserModel)
            .options(selectinload(UserModel.roles))
            .where(UserModel.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )

    async def _get_user(self, db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(self._build_user_query_with_relationships().where(UserModel.id == user_id))
        orm_user = result.scalars().first()
        return User.model_validate(orm_user) if orm_user else None

    async def _get_role(self, db: AsyncSession, name: str) -> Optional[RoleModel]:
        result = await db.execute(select(RoleModel).where(RoleModel.name == name))
        return result.scalars().first()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @store_operation("create")
    async def create(self, user_in: UserCreate) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateEmailError: the email is already registered (soft-deleted users included)
        """
        async with self._session() as db:
            orm_user = UserModel(
                name=user_in.name,
                email=user_in.email,
                password_hash=user_in.password_hash,
            )
            db.add(orm_user)
            try:
                await db.flush()
            except IntegrityError as e:
                if _is_email_violation(e):
                    logger.warning(f"Create rejected, email already registered: {user_in.email}")
                    raise DuplicateEmailError(user_in.email, "create") from e
                raise
            user = await self._get_user(db, orm_user.id)

        logger.info(f"User created: {user.id}")
        return user

    @store_operation("find_by_email")
    async def find_by_email(self, email: str) -> Optional[User]:
        """Return the active user with this email and its roles, or None."""
        async with self._session() as db:
            result = await db.execute(self._build_user_query_with_relationships().where(UserModel.email == email))
            orm_user = result.scalars().first()
            return User.model_validate(orm_user) if orm_user else None

    @store_operation("find_by_id")
    async def find_by_id(self, user_id: int) -> Optional[User]:
        """Return the active user with this id and its roles, or None."""
        async with self._session() as db:
            return await self._get_user(db, user_id)

    @store_operation("update")
    async def update(self, user_id: int, user_in: UserUpdate) -> User:
        """
        Write name, email and password_hash (and bump updated_at).

        Only those columns are part of the UPDATE statement; role assignments
        are never touched here.

        Raises:
            UserNotFoundError: no active user with this id
            DuplicateEmailError: the new email belongs to another user
        """
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.deleted_at.is_(None))
            .values(
                name=user_in.name,
                email=user_in.email,
                password_hash=user_in.password_hash,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )

        async with self._session() as db:
            try:
                result = await db.execute(stmt)
            except IntegrityError as e:
                if _is_email_violation(e):
                    logger.warning(f"Update of user {user_id} rejected, email already registered: {user_in.email}")
                    raise DuplicateEmailError(user_in.email, "update") from e
                raise
            if result.rowcount == 0:
                raise UserNotFoundError(user_id, "update")
            user = await self._get_user(db, user_id)

        logger.info(f"User updated: {user_id}")
        return user

    @store_operation("delete")
    async def delete(self, user_id: int) -> None:
        """
        Soft delete: set deleted_at and keep the row.

        Deleting a user that is already deleted succeeds without changes.

        Raises:
            UserNotFoundError: the id never existed
        """
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.deleted_at.is_(None))
            .values(deleted_at=func.now())
            .execution_options(synchronize_session=False)
        )

        async with self._session() as db:
            result = await db.execute(stmt)
            if result.rowcount == 0:
                exists = await db.scalar(select(UserModel.id).where(UserModel.id == user_id))
                if exists is None:
                    raise UserNotFoundError(user_id, "delete")
                logger.debug(f"User {user_id} already deleted")
                return

        logger.info(f"User soft-deleted: {user_id}")

    @store_operation("list_all_users")
    async def list_all_users(self, filters: UserFilter) -> PaginatedResponse[User]:
        """
        Return one page of active users, roles loaded, plus the total number of matches.

        Raises:
            InvalidSortFieldError / InvalidSortOrderError: before any query runs
        """
        listing = build_user_listing(filters)

        async with self._session() as db:
            response = await paginate(db, listing, selectinload(UserModel.roles))

        return PaginatedResponse[User](
            page=listing.page,
            page_size=listing.page_size,
            total=response["total"],
            items=[User.model_validate(u) for u in response["items"]],
        )

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    @store_operation("assign_role")
    async def assign_role(self, user_id: int, role_name: str) -> None:
        """
        Give a user a role. Assigning a role the user already holds is a no-op.

        Uses INSERT ... ON CONFLICT DO NOTHING against the (user_id, role_id)
        key, so two concurrent calls for the same pair leave a single row.

        Raises:
            RoleNotFoundError: unknown role name
            UserNotFoundError: the user row does not exist
        """
        async with self._session() as db:
            role = await self._get_role(db, role_name)
            if role is None:
                logger.warning(f"Cannot assign unknown role '{role_name}' to user {user_id}")
                raise RoleNotFoundError(role_name, "assign_role")

            stmt = insert_ignore(
                db.get_bind().dialect.name,
                UserRoleModel.__table__,
                {"user_id": user_id, "role_id": role.id},
                ["user_id", "role_id"],
            )
            try:
                await db.execute(stmt)
            except IntegrityError as e:
                # Only the users foreign key can fail once conflicts are ignored
                raise UserNotFoundError(user_id, "assign_role") from e

        logger.info(f"Role '{role_name}' assigned to user {user_id}")

    @store_operation("remove_role")
    async def remove_role(self, user_id: int, role_name: str) -> None:
        """
        Take a role away from a user. Removing a role the user does not hold is a no-op.

        Raises:
            RoleNotFoundError: unknown role name
        """
        async with self._session() as db:
            role = await self._get_role(db, role_name)
            if role is None:
                logger.warning(f"Cannot remove unknown role '{role_name}' from user {user_id}")
                raise RoleNotFoundError(role_name, "remove_role")

            table = UserRoleModel.__table__
            await db.execute(
                delete(table).where(table.c.user_id == user_id, table.c.role_id == role.id)
            )

        logger.info(f"Role '{role_name}' removed from user {user_id}")

    @store_operation("find_role_by_name")
    async def find_role_by_name(self, name: str) -> Optional[Role]:
        async with self._session() as db:
            role = await self._get_role(db, name)
            return Role.model_validate(role) if role else None

    @store_operation("get_user_roles")
    async def get_user_roles(self, user_id: int) -> List[Role]:
        """Roles currently assigned to the user, ordered by name."""
        query = (
            select(RoleModel)
            .join(UserRoleModel, UserRoleModel.role_id == RoleModel.id)
            .where(UserRoleModel.user_id == user_id)
            .order_by(RoleModel.name)
        )
        async with self._session() as db:
            result = await db.execute(query)
            return [Role.model_validate(r) for r in result.scalars().all()]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def transaction(self, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``fn`` with every repository call inside it sharing one transaction.

        Commits when ``fn`` returns, rolls back when it raises (cancellation
        included) and re-raises the original exception. Called inside another
        transaction, it simply joins the outer one.

        Example:
            async def register():
                user = await repo.create(user_in)
                await repo.assign_role(user.id, "admin")
                return user

            user = await repo.transaction(register)
        """
        if self._bound_session() is not None:
            return await fn()

        async with self._session_factory() as session:
            tx = await session.begin()
            with bind_session(session):
                try:
                    result = await fn()
                except BaseException:
                    try:
                        await tx.rollback()
                    except SQLAlchemyError as rollback_error:
                        logger.error(
                            f"Transaction rollback failed: {rollback_error.__class__.__name__}", exc_info=True
                        )
                    raise

            try:
                await tx.commit()
            except SQLAlchemyError as e:
                logger.error(f"Database failure during transaction commit: {e.__class__.__name__}", exc_info=True)
                raise StoreFailureError("transaction", e.__class__.__name__) from e

        return result

    async def create_and_assign_role(self, user_in: UserCreate, role_name: str) -> User:
        """Create a user and give it a role atomically: both rows persist or neither does."""
        async def _create_and_assign() -> User:
            user = await self.create(user_in)
            await self.assign_role(user.id, role_name)
            return await self.find_by_id(user.id)

        return await self.transaction(_create_and_assign)


@lru_cache()
def get_user_repository() -> UserRepository:
    return UserRepository(db_manager.async_session_factory)
