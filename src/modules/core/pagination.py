"""Page-number pagination over Django querysets.

Services return ``PageDTO`` instances so callers get the same paging
envelope regardless of transport.
"""

from __future__ import annotations

from typing import Callable, Generic, List, TypeVar

from django.conf import settings
from django.core.paginator import Paginator
from django.db.models import QuerySet
from pydantic import BaseModel, ConfigDict

T = TypeVar("T")

MAX_PAGE_SIZE = 100


class PageDTO(BaseModel, Generic[T]):
    """Immutable page of results plus pagination metadata."""

    model_config = ConfigDict(frozen=True)

    results: List[T]
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool


def clamp_page_size(page_size: int | None) -> int:
    if page_size is None or page_size < 1:
        return settings.DEFAULT_PAGE_SIZE
    return min(page_size, MAX_PAGE_SIZE)


def paginate(
    queryset: QuerySet,
    page: int,
    page_size: int | None,
    to_dto: Callable[[object], T],
) -> PageDTO[T]:
    """Slice *queryset* into the requested page.

    Pages past the end return an empty ``results`` list instead of raising.
    """
    size = clamp_page_size(page_size)
    number = max(page, 1)
    paginator = Paginator(queryset, size)
    total = paginator.count
    total_pages = paginator.num_pages if total else 0

    if number <= paginator.num_pages and total:
        current = paginator.page(number)
        items = [to_dto(obj) for obj in current.object_list]
    else:
        items = []

    return PageDTO(
        results=items,
        page=number,
        page_size=size,
        total=total,
        total_pages=total_pages,
        has_next=number < total_pages,
        has_previous=number > 1,
    )
