"""Pagination arithmetic and the page envelope."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .compiler import CompiledQuery
    from .request import RequestDescriptor


class PageMetrics(NamedTuple):
    total_pages: int
    max_page: int
    first: bool
    last: bool
    visible: int


def compute_metrics(
    *,
    total: int,
    limit: int,
    offset: int,
    page: int,
    rows_returned: int,
) -> PageMetrics:
    """
    Derive page counts and boundary flags.

    ``total_pages = ceil(total / limit)``; with no rows both
    ``total_pages`` and ``max_page`` are 0.  A ``limit`` below 1 counts
    everything as a single page instead of dividing by zero.
    """
    if total < 1:
        total_pages = 0
    elif limit < 1:
        total_pages = 1
    else:
        total_pages = -(-total // limit)
    return PageMetrics(
        total_pages=total_pages,
        max_page=total_pages,
        first=offset < 1,
        last=page == total_pages,
        visible=rows_returned,
    )


class Page(BaseModel):
    """Result envelope returned for every paginated request."""

    items: list[Any] = Field(default_factory=list)
    page: int = 1
    size: int = 0
    max_page: int = 0
    total_pages: int = 0
    total: int = 0
    last: bool = False
    first: bool = True
    visible: int = 0
    error: bool = False
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict; the error keys only appear when an error occurred."""
        data = self.model_dump(mode="json")
        if not self.error:
            data.pop("error", None)
            data.pop("error_message", None)
        return data


def build_page(
    items: Sequence[Any],
    *,
    total: int,
    query: CompiledQuery,
    descriptor: RequestDescriptor,
) -> Page:
    """Assemble the envelope for one executed request."""
    metrics = compute_metrics(
        total=total,
        limit=query.limit,
        offset=query.offset,
        page=descriptor.page,
        rows_returned=len(items),
    )
    return Page(
        items=list(items),
        page=descriptor.page,
        size=descriptor.size,
        max_page=metrics.max_page,
        total_pages=metrics.total_pages,
        total=total,
        last=metrics.last,
        first=metrics.first,
        visible=metrics.visible,
    )


def build_error_page(
    message: str,
    *,
    query: CompiledQuery,
    descriptor: RequestDescriptor,
    surface: bool,
) -> Page:
    """Empty envelope for a failed execution; *surface* exposes the message."""
    page = build_page([], total=0, query=query, descriptor=descriptor)
    if not surface:
        return page
    return page.model_copy(update={"error": True, "error_message": message})
