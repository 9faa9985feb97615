from pydantic import BaseModel, Field


class BaseFilter(BaseModel):
    page: int = Field(default=1, ge=1, description="Page number (starts from 1)")
    page_size: int = Field(default=20, ge=1, le=1000, description="Items per page")
    # Validated against an allow-list by the query builder, not here
    sort: str = Field(default="created_at", description="Column to sort by")
    order: str = Field(default="desc", description="Sort direction: asc or desc")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size
