from app.core.schemas.base import BaseSchema
from app.core.schemas.base_filter import BaseFilter
from app.core.schemas.api_response import ApiResponse, PaginatedResponse

__all__ = [
    "BaseSchema",
    "BaseFilter",
    "ApiResponse",
    "PaginatedResponse",
]
