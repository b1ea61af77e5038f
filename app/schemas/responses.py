"""
schemas/responses.py — Shared response models

Pagination envelope used by the staff list endpoints (scholars, requests):
{"data": [...], "pagination": {page, limit, totalItems, totalPages, hasNext, hasPrev}}

Called by: services/scholar_service.py, services/request_service.py
Depends on: pydantic
"""

from __future__ import annotations

import math

from .common import CamelModel


class PaginationMeta(CamelModel):
    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total_items: int) -> "PaginationMeta":
        total_pages = math.ceil(total_items / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total_items=total_items,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


def paginated(data: list[dict], page: int, limit: int, total_items: int) -> dict:
    return {
        "data": data,
        "pagination": PaginationMeta.build(page, limit, total_items).model_dump(by_alias=True),
    }
