"""
Shared Pydantic schemas: the paginated envelope.
"""

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a filtered listing."""
    items: List[T]
    total: int
    total_pages: int
    current_page: int

    @classmethod
    def build(cls, items: List[T], total: int, page: int, limit: int) -> "Page[T]":
        return cls(
            items=items,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
            current_page=page,
        )
