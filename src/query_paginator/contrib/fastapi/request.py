"""Buffer a Starlette request into the paginator's HttpRequest."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...request import HttpRequest

if TYPE_CHECKING:
    from starlette.requests import Request


async def read_request(request: Request) -> HttpRequest:
    """
    Snapshot *request* for the paginator.

    The body is only read for ``POST``; every other method is answered from
    the query string (first value wins for repeated keys).
    """
    method = request.method.upper()
    body = await request.body() if method == "POST" else None
    query: dict[str, str] = {}
    for key, value in request.query_params.multi_items():
        query.setdefault(key, value)
    return HttpRequest(
        method=method,
        query=query,
        body=body,
    )
