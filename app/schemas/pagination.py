from typing import Any

from pydantic import BaseModel


class PaginationMeta(BaseModel):
    """Pagination metadata"""
    total: int
    limit: int
    offset: int
    has_more: bool


class RecordPage(BaseModel):
    """List response wrapper used when ?include_pagination=true"""
    items: list[dict[str, Any]]
    pagination: PaginationMeta

    @classmethod
    def build(cls, items: list[dict[str, Any]], *, total: int, limit: int, offset: int) -> "RecordPage":
        return cls(
            items=items,
            pagination=PaginationMeta(
                total=total,
                limit=limit,
                offset=offset,
                has_more=(offset + len(items) < total),
            ),
        )
