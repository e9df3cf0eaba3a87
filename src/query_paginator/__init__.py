"""Client-driven filter, sort and pagination compiled into parameterised SQL."""

from __future__ import annotations

from .cache import (
    CacheGateway,
    MemoryCacheAdapter,
    create_cache_key,
    create_count_cache_key,
)
from .compiler import CompiledQuery, FilterCompiler, compile_filters, compile_request
from .config import PaginatorConfig
from .dialects import DIALECTS, Dialect, get_dialect
from .exceptions import (
    CacheAdapterError,
    ConfigurationError,
    FilterParseError,
    PaginationError,
    QueryExecutionError,
)
from .fields import resolve_column, sanitize_fields, select_fields
from .nodes import Comparison, FilterNode, Group, OperatorToken
from .operators import LIKE_ALIASES, Connector, FilterOperator, sanitize_operator
from .pagination import Page, PageMetrics, build_page, compute_metrics
from .paginator import Paginator, PaginatorQuery
from .parser import FilterGrammarParser, parse_filters
from .ports import ICacheAdapter, IQueryExecutor, QueryResult
from .request import (
    HttpRequest,
    RequestDescriptor,
    RequestParameters,
    SortSpec,
    parse_request,
)
from .values import coerce_number, escape_like, fold_whitespace, wrap_like

__all__ = [
    "CacheAdapterError",
    "CacheGateway",
    "Comparison",
    "CompiledQuery",
    "ConfigurationError",
    "Connector",
    "DIALECTS",
    "Dialect",
    "FilterCompiler",
    "FilterGrammarParser",
    "FilterNode",
    "FilterOperator",
    "FilterParseError",
    "Group",
    "HttpRequest",
    "ICacheAdapter",
    "IQueryExecutor",
    "LIKE_ALIASES",
    "MemoryCacheAdapter",
    "OperatorToken",
    "Page",
    "PageMetrics",
    "PaginationError",
    "Paginator",
    "PaginatorConfig",
    "PaginatorQuery",
    "QueryExecutionError",
    "QueryResult",
    "RequestDescriptor",
    "RequestParameters",
    "SortSpec",
    "build_page",
    "coerce_number",
    "compile_filters",
    "compile_request",
    "compute_metrics",
    "create_cache_key",
    "create_count_cache_key",
    "escape_like",
    "fold_whitespace",
    "get_dialect",
    "parse_filters",
    "parse_request",
    "resolve_column",
    "sanitize_fields",
    "sanitize_operator",
    "select_fields",
    "wrap_like",
]
