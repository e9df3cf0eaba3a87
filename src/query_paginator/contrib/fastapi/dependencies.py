"""FastAPI dependencies for paginated endpoints.

Provides Depends functions for injecting the buffered request into route
handlers.
"""

from __future__ import annotations

from fastapi import Request

from ...request import HttpRequest
from .request import read_request


async def get_http_request(request: Request) -> HttpRequest:
    """Buffered request for :meth:`Paginator.paginate`.

    Example:
        ```python
        from fastapi import APIRouter, Depends
        from query_paginator.contrib.fastapi import get_http_request

        router = APIRouter()

        @router.api_route("/users", methods=["GET", "POST"])
        async def list_users(req: HttpRequest = Depends(get_http_request)):
            page = await paginator.paginate(executor, req, cache_prefix="users:")
            return page.to_dict()
        ```
    """
    return await read_request(request)
