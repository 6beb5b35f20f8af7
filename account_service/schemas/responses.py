"""Success envelope returned by every route: {message, data?, meta?}."""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")

    class Config:
        populate_by_name = True

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


class Meta(BaseModel):
    pagination: Pagination


class ApiResponse(BaseModel, Generic[DataT]):
    message: str
    data: DataT | None = None
    meta: Meta | None = None
