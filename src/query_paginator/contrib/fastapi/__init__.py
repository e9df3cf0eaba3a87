"""FastAPI integration for query-paginator."""

from .dependencies import get_http_request
from .request import read_request

__all__: list[str] = [
    "get_http_request",
    "read_request",
]
