from .filter_helper import (
    USER_SORT_COLUMNS,
    ListingQuery,
    escape_like,
    contains_pattern,
    resolve_sorting,
    apply_user_filters,
    build_user_listing,
    paginate,
)

__all__ = [
    "USER_SORT_COLUMNS",
    "ListingQuery",
    "escape_like",
    "contains_pattern",
    "resolve_sorting",
    "apply_user_filters",
    "build_user_listing",
    "paginate",
]
