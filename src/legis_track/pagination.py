# ABOUTME: Framework-agnostic pagination and sorting value objects.
# ABOUTME: Defines Page, PageRequest and Sort used between services and repository ports.

import math
from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")
U = TypeVar("U")


class SortDirection(str, Enum):
    """Sort direction for a single property."""

    ASC = "asc"
    DESC = "desc"


class SortOrder(BaseModel):
    """Ordering on one property."""

    property: str
    direction: SortDirection = SortDirection.ASC


class Sort(BaseModel):
    """Ordered list of sort orders, applied left to right."""

    orders: list[SortOrder] = []

    @classmethod
    def by(cls, *properties: str, direction: SortDirection = SortDirection.ASC) -> "Sort":
        return cls(orders=[SortOrder(property=p, direction=direction) for p in properties])


class PageRequest(BaseModel):
    """Requested page. Pure data holder: clamping happens at the service boundary."""

    page_number: int
    page_size: int
    sort: Sort | None = None

    @classmethod
    def of(cls, page: int, size: int, sort: Sort | None = None) -> "PageRequest":
        return cls(page_number=page, page_size=size, sort=sort)

    @property
    def offset(self) -> int:
        return self.page_number * self.page_size


class Page(BaseModel, Generic[T]):
    """One page of results with pagination metadata."""

    content: list[T]
    total_elements: int
    total_pages: int
    page_number: int
    page_size: int
    is_first: bool
    is_last: bool
    has_next: bool
    has_previous: bool

    @property
    def is_empty(self) -> bool:
        return not self.content

    def map(self, transform: Callable[[T], U]) -> "Page[U]":
        """Return a page with the same metadata and transformed content."""
        return Page(
            content=[transform(item) for item in self.content],
            total_elements=self.total_elements,
            total_pages=self.total_pages,
            page_number=self.page_number,
            page_size=self.page_size,
            is_first=self.is_first,
            is_last=self.is_last,
            has_next=self.has_next,
            has_previous=self.has_previous,
        )

    @classmethod
    def empty(cls) -> "Page[T]":
        return cls(
            content=[],
            total_elements=0,
            total_pages=0,
            page_number=0,
            page_size=0,
            is_first=True,
            is_last=True,
            has_next=False,
            has_previous=False,
        )

    @classmethod
    def of(cls, content: list[T], page_request: PageRequest, total_elements: int) -> "Page[T]":
        """Build a page for ``content`` fetched with ``page_request`` out of ``total_elements``."""
        size = page_request.page_size
        number = page_request.page_number
        total_pages = math.ceil(total_elements / size) if size > 0 else 0
        return cls(
            content=content,
            total_elements=total_elements,
            total_pages=total_pages,
            page_number=number,
            page_size=size,
            is_first=number == 0,
            is_last=number + 1 >= total_pages,
            has_next=number + 1 < total_pages,
            has_previous=number > 0,
        )
