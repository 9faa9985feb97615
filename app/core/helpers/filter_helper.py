from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from sqlalchemy import Select, select, func, distinct, or_, asc, desc

from app.api.v1.models import User as UserModel, Role as RoleModel, UserRole as UserRoleModel
from app.core.models import InvalidSortFieldError, InvalidSortOrderError
from app.core.schemas import BaseFilter


LIKE_ESCAPE = "\\"

# Public sort keys mapped to fixed column objects. Caller input only ever selects a key.
USER_SORT_COLUMNS: Dict[str, Any] = {
    "name": UserModel.name,
    "email": UserModel.email,
    "created_at": UserModel.created_at,
    "updated_at": UserModel.updated_at,
}

SORT_DIRECTIONS: Dict[str, Callable[[Any], Any]] = {
    "asc": asc,
    "desc": desc,
}


@dataclass(frozen=True)
class ListingQuery:
    """Statements for one page of a listing plus the matching total."""
    page_query: Select
    count_query: Select
    page: int
    page_size: int


def escape_like(value: str, escape: str = LIKE_ESCAPE) -> str:
    """Escape LIKE metacharacters so the value only matches literally."""
    return (
        value.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


def contains_pattern(value: str) -> str:
    return f"%{escape_like(value)}%"


def resolve_sorting(sort: str, order: str):
    """Map caller-supplied sort/order onto an ORDER BY clause, rejecting anything off the allow-list."""
    column = USER_SORT_COLUMNS.get(sort)
    if column is None:
        raise InvalidSortFieldError(sort, USER_SORT_COLUMNS.keys())

    direction = SORT_DIRECTIONS.get(order)
    if direction is None:
        raise InvalidSortOrderError(order)

    return direction(column)


def apply_user_filters(query: Select, role: Optional[str] = None, search: Optional[str] = None) -> Select:
    # Soft-deleted users never show up in listings
    query = query.where(UserModel.deleted_at.is_(None))

    if role:
        query = (
            query.join(UserRoleModel, UserRoleModel.user_id == UserModel.id)
            .join(RoleModel, RoleModel.id == UserRoleModel.role_id)
            .where(RoleModel.name == role)
        )

    if search:
        pattern = contains_pattern(search)
        query = query.where(
            or_(
                UserModel.name.like(pattern, escape=LIKE_ESCAPE),
                UserModel.email.like(pattern, escape=LIKE_ESCAPE),
            )
        )

    return query


def build_user_listing(filters: BaseFilter) -> ListingQuery:
    """
    Build the page and count statements for a user listing.

    Sorting is validated first, so an invalid request fails before any
    statement exists. The total counts distinct user ids because the role
    join could otherwise repeat a user.
    """
    order_by = resolve_sorting(filters.sort, filters.order)

    role = getattr(filters, "role", None)
    search = getattr(filters, "search", None)

    page_query = (
        apply_user_filters(select(UserModel), role=role, search=search)
        .distinct()
        .order_by(order_by, UserModel.id.asc())
        .limit(filters.page_size)
        .offset(filters.offset)
    )
    count_query = apply_user_filters(
        select(func.count(distinct(UserModel.id))).select_from(UserModel),
        role=role,
        search=search,
    )

    return ListingQuery(
        page_query=page_query,
        count_query=count_query,
        page=filters.page,
        page_size=filters.page_size,
    )


async def paginate(session, listing: ListingQuery, *options):
    total = await session.scalar(listing.count_query) or 0

    page_query = listing.page_query
    if options:
        page_query = page_query.options(*options)
    result = await session.execute(page_query.execution_options(populate_existing=True))
    items = result.scalars().all()

    return {
        "total": total,
        "items": items,
    }
