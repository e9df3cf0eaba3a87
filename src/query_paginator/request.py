"""
Request descriptor builder - request parameters -> RequestDescriptor.

Two request shapes are understood:

* :class:`HttpRequest` - a buffered request (method, query mapping, raw
  body).  ``POST`` bodies are decoded as JSON; every other method reads
  the query string.
* a ``Mapping`` - an already-decoded parameter object (e.g. a framework's
  query-parameter dict or a parsed JSON body).

Unparseable numerics fall back to defaults and an unparseable filter
yields the empty filter; nothing here raises on client input.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, NamedTuple
from urllib.parse import parse_qsl

from .fields import sanitize_field, sanitize_fields
from .nodes import Group
from .parser import parse_filters

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .config import PaginatorConfig
    from .nodes import FilterNode

logger = logging.getLogger("query_paginator.request")

ASC = "ASC"
DESC = "DESC"


@dataclass(frozen=True)
class SortSpec:
    """One ``ORDER BY`` entry."""

    column: str
    direction: str = ASC

    def to_dict(self) -> dict[str, str]:
        return {"column": self.column, "direction": self.direction}


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Resolved request: 1-based page, page size, sorts, fields and filters.

    Built once per request and immutable thereafter.
    """

    page: int = 1
    size: int = 10
    sorts: tuple[SortSpec, ...] = ()
    fields: tuple[str, ...] = ()
    filters: FilterNode = field(default_factory=Group)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "size": self.size,
            "sorts": [s.to_dict() for s in self.sorts],
            "fields": list(self.fields),
            "filters": self.filters.to_dict(),
        }


@dataclass(frozen=True)
class HttpRequest:
    """Buffered HTTP request as seen by the paginator."""

    method: str = "GET"
    query: Mapping[str, str] = field(default_factory=dict)
    body: bytes | str | None = None

    @classmethod
    def from_query_string(cls, query_string: str, method: str = "GET") -> HttpRequest:
        """Build a request from a raw ``a=1&b=2`` string (first value wins)."""
        query: dict[str, str] = {}
        for key, value in parse_qsl(query_string, keep_blank_values=True):
            query.setdefault(key, value)
        return cls(method=method, query=query)


class RequestParameters(NamedTuple):
    """Raw, undecoded parameter values."""

    page: Any = None
    size: Any = None
    sort: Any = None
    order: Any = None
    filters: Any = None
    fields: Any = None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_request(request: Any, config: PaginatorConfig) -> RequestDescriptor:
    """Build a :class:`RequestDescriptor` from either supported request shape."""
    if request is None:
        params = RequestParameters()
    elif isinstance(request, HttpRequest):
        params = extract_http_parameters(request, config)
    elif isinstance(request, Mapping):
        params = extract_parameters(request, config)
    else:
        logger.warning(
            "Unsupported request type %s; using defaults", type(request).__name__
        )
        params = RequestParameters()
    return build_descriptor(params, config)


def extract_http_parameters(
    request: HttpRequest, config: PaginatorConfig
) -> RequestParameters:
    """Read parameters from the body (``POST``) or the query string."""
    method = (request.method or "GET").upper()
    if method != "POST":
        return extract_parameters(request.query, config)

    if request.body is None or not request.body.strip():
        return RequestParameters()
    try:
        payload = config.unmarshal(request.body)
    except (ValueError, TypeError, RecursionError) as exc:
        logger.warning("Ignoring undecodable request body: %s", exc)
        return RequestParameters()
    if not isinstance(payload, Mapping):
        logger.warning("Ignoring request body that is not a JSON object")
        return RequestParameters()
    return extract_parameters(payload, config)


def extract_parameters(
    source: Mapping[str, Any], config: PaginatorConfig
) -> RequestParameters:
    """Pick the recognised keys (or their configured aliases) out of *source*."""
    if not config.custom_param_enabled:
        return RequestParameters(
            page=source.get("page"),
            size=source.get("size"),
            sort=source.get("sort"),
            order=source.get("order"),
            filters=source.get("filters"),
            fields=source.get("fields"),
        )

    lookup = source.get
    return RequestParameters(
        page=_find_value(lookup, config.page_params, "page"),
        size=_find_value(lookup, config.size_params, "size"),
        sort=_find_value(lookup, config.sort_params, "sort"),
        order=_find_value(lookup, config.order_params, "order"),
        filters=_find_value(lookup, config.filter_params, "filters"),
        fields=_find_value(lookup, config.fields_params, "fields"),
    )


def build_descriptor(
    params: RequestParameters, config: PaginatorConfig
) -> RequestDescriptor:
    """Apply defaults and parse sorts, fields and filters."""
    size = _parse_int(params.size)
    if size is None or size <= 0:
        size = config.default_size if config.default_size > 0 else 10

    page = _parse_int(params.page)
    if page is None or page <= 0 or (page - 1) * size > _MAX_INT64:
        page = 1

    return RequestDescriptor(
        page=page,
        size=size,
        sorts=tuple(parse_sorts(params.sort, params.order)),
        fields=tuple(sanitize_fields(params.fields)),
        filters=parse_filters(params.filters, config),
    )


def parse_sorts(raw: Any, order: Any = None) -> list[SortSpec]:
    """
    Parse ``"user.name,-id"`` into sort specs.

    A leading ``-`` forces ``DESC``; otherwise *order* supplies the
    direction (``DESC`` when it says so, ``ASC`` by default).
    """
    if not raw:
        return []
    if isinstance(raw, str):
        entries: Sequence[Any] = raw.split(",")
    elif isinstance(raw, list | tuple):
        entries = raw
    else:
        return []

    fallback = DESC if isinstance(order, str) and order.strip().upper() == DESC else ASC
    sorts: list[SortSpec] = []
    for entry in entries:
        if not isinstance(entry, str):
            continue
        column = entry.strip()
        direction = fallback
        if column.startswith("-"):
            column = column[1:]
            direction = DESC
        column = sanitize_field(column).replace(",", "")
        if column:
            sorts.append(SortSpec(column=column, direction=direction))
    return sorts


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _find_value(
    lookup: Callable[[str], Any], aliases: Sequence[str], default_key: str
) -> Any:
    """First non-empty value among *aliases*, else the value under *default_key*."""
    for key in aliases:
        value = lookup(key)
        if value not in (None, ""):
            return value
    return lookup(default_key)


_MAX_INT64 = 2**63 - 1


def _parse_int(value: Any) -> int | None:
    parsed = _parse_raw_int(value)
    if parsed is None or abs(parsed) > _MAX_INT64:
        return None
    return parsed


def _parse_raw_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None
