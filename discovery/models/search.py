"""Explore response models"""

import math

from pydantic import BaseModel, Field
from typing import Any, Dict, List

from .listing import EnrichedListing


class Pagination(BaseModel):
    """Pagination metadata for one result page"""
    page: int
    per_page: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / per_page) if per_page > 0 else 0
        return cls(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class FiltersEcho(BaseModel):
    """Echo of the recognized, non-empty filters a page was built from"""
    applied: Dict[str, Any] = Field(default_factory=dict)


class ExploreResponse(BaseModel):
    """Explore results with pagination metadata"""
    data: List[EnrichedListing] = Field(default_factory=list)
    pagination: Pagination
    filters: FiltersEcho = Field(default_factory=FiltersEcho)

    @property
    def is_empty(self) -> bool:
        return self.pagination.total == 0
