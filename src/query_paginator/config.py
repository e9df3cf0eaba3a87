"""
PaginatorConfig - process-wide defaults shared read-only across requests.

The configuration is immutable.  :meth:`PaginatorConfig.resolve` returns a
derived copy with the dialect-dependent defaults filled in; the caller's
instance is never touched.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .dialects import DEFAULT_DIALECT, Dialect, get_dialect
from .operators import Connector

DEFAULT_PAGE_SIZE = 10


class PaginatorConfig(BaseModel):
    """
    Immutable paginator configuration.

    Attributes:
        default_size: Page size used when the request carries none.
        operator: Connector inserted between siblings that lack one.
        field_wrapper: ``%s`` template applied to LIKE-family columns.
        value_wrapper: ``%s`` template applied to LIKE-family values;
            when empty the value is lower-cased instead.
        smart_search: Fold whitespace runs in LIKE values to ``%``.
        custom_param_enabled: Look parameters up through the alias lists.
        field_selector_enabled: Honour the client's ``fields`` list.
        error_enabled: Surface execution errors in the page envelope.
        dialect: Dialect identifier (see :mod:`query_paginator.dialects`).
        cache_adapter: Optional :class:`~query_paginator.ports.ICacheAdapter`.
        cache_ttl: Seconds passed to the cache adapter on writes.
        count_cache_enabled: Cache row counts per table and filter set.
        marshal / unmarshal: JSON codec for request bodies and filters.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    default_size: int = DEFAULT_PAGE_SIZE
    operator: str = Connector.OR.value
    field_wrapper: str = ""
    value_wrapper: str = ""
    smart_search: bool = False

    custom_param_enabled: bool = False
    page_params: list[str] = Field(default_factory=list)
    size_params: list[str] = Field(default_factory=list)
    sort_params: list[str] = Field(default_factory=list)
    order_params: list[str] = Field(default_factory=list)
    filter_params: list[str] = Field(default_factory=list)
    fields_params: list[str] = Field(default_factory=list)

    field_selector_enabled: bool = False
    error_enabled: bool = False
    dialect: str | None = None

    cache_adapter: Any = Field(default=None, exclude=True)
    cache_ttl: int | None = None
    count_cache_enabled: bool = False

    marshal: Callable[..., str] = Field(default=json.dumps, exclude=True)
    unmarshal: Callable[..., Any] = Field(default=json.loads, exclude=True)

    @field_validator("operator", mode="before")
    @classmethod
    def _normalise_operator(cls, value: Any) -> str:
        text = str(value or "").strip().upper()
        if text in (Connector.AND.value, Connector.OR.value):
            return text
        return Connector.OR.value

    @property
    def sql_dialect(self) -> Dialect:
        """The dialect table entry for :attr:`dialect`."""
        if self.dialect is None:
            return DEFAULT_DIALECT
        return get_dialect(self.dialect)

    def resolve(self, dialect: str | None = None) -> PaginatorConfig:
        """
        Return a copy with per-dialect defaults filled in.

        *dialect* (typically the executor's) overrides :attr:`dialect`.
        The LIKE field wrapper is taken from the dialect table only when
        neither wrapper was configured.
        """
        name = dialect if dialect is not None else self.dialect
        entry = get_dialect(name)
        update: dict[str, Any] = {"dialect": name}
        if self.default_size <= 0:
            update["default_size"] = DEFAULT_PAGE_SIZE
        if not self.field_wrapper and not self.value_wrapper:
            update["field_wrapper"] = entry.field_wrapper
        return self.model_copy(update=update)
