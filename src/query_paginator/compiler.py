"""
Compile a filter tree into a parameterised predicate.

The output is a token list (``wheres``) whose placeholders are literal
``?`` tokens, plus the bound parameters in the same left-to-right order.
``CompiledQuery.where_string`` joins the tokens with single spaces; the
data-access collaborator maps each ``?`` token to its driver's bind
syntax and expands list parameters for ``IN``.

Identifier quoting and LIKE case-folding come from the configured
dialect; nothing dialect-specific is hard-coded per operator here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .fields import resolve_column
from .nodes import Comparison, Group, OperatorToken, interleave
from .operators import (
    LIKE_OPERATORS,
    NULL_OPERATORS,
    RANGE_OPERATORS,
    SET_OPERATORS,
)
from .request import SortSpec
from .values import coerce_number

if TYPE_CHECKING:
    from .config import PaginatorConfig
    from .nodes import FilterNode
    from .request import RequestDescriptor

logger = logging.getLogger("query_paginator.compiler")

PLACEHOLDER = "?"

_Fragment = tuple[bool, list[str], list[Any]]


@dataclass(frozen=True)
class CompiledQuery:
    """Predicate, parameters, paging window and resolved sorts for one request."""

    wheres: tuple[str, ...] = ()
    params: tuple[Any, ...] = ()
    limit: int = 10
    offset: int = 0
    sorts: tuple[SortSpec, ...] = field(default_factory=tuple)

    @property
    def where_string(self) -> str:
        return " ".join(self.wheres)

    def to_dict(self) -> dict[str, Any]:
        return {
            "where": self.where_string,
            "params": list(self.params),
            "limit": self.limit,
            "offset": self.offset,
            "sorts": [s.to_dict() for s in self.sorts],
        }


class FilterCompiler:
    """Recursive filter-tree compiler bound to one (resolved) configuration."""

    def __init__(self, config: PaginatorConfig) -> None:
        self._config = config
        self._dialect = config.sql_dialect

    def compile(self, node: FilterNode) -> tuple[list[str], list[Any]]:
        """Return ``(wheres, params)`` for *node*."""
        if isinstance(node, OperatorToken):
            return [node.symbol], []
        if isinstance(node, Group):
            return self._compile_group(node)
        return self._compile_comparison(node)

    def quote(self, reference: str) -> str:
        """Resolve a dotted reference and quote it for the dialect."""
        return self._dialect.quote(resolve_column(reference))

    # ------------------------------------------------------------------ #
    # Internal                                                            #
    # ------------------------------------------------------------------ #

    def _compile_group(self, group: Group) -> tuple[list[str], list[Any]]:
        fragments: list[_Fragment] = []
        for child in group.children:
            wheres, params = self.compile(child)
            if wheres:
                fragments.append((isinstance(child, OperatorToken), wheres, params))

        # Re-pair connectors: children that compiled to nothing drop out.
        fragments = interleave(
            fragments,
            lambda fragment: fragment[0],
            lambda: (True, [self._config.operator], []),
        )
        if not fragments:
            return [], []

        out_wheres = ["("]
        out_params: list[Any] = []
        for _, wheres, params in fragments:
            out_wheres.extend(wheres)
            out_params.extend(params)
        out_wheres.append(")")
        return out_wheres, out_params

    def _compile_comparison(self, node: Comparison) -> tuple[list[str], list[Any]]:
        column = self.quote(node.column)
        if not column:
            logger.debug("Dropping comparison on unusable column %r", node.column)
            return [], []
        op = node.operator
        value = node.value

        if op in NULL_OPERATORS:
            if value is None or (isinstance(value, str) and value.lower() == "null"):
                return [column, op, "NULL"], []
            return [column, op, PLACEHOLDER], [value]

        if op in RANGE_OPERATORS:
            if not isinstance(value, list | tuple) or len(value) != 2:
                logger.debug("Dropping %s on %s: needs two values", op, node.column)
                return [], []
            low, high = coerce_number(list(value))
            return (
                ["(", column, op, PLACEHOLDER, "AND", PLACEHOLDER, ")"],
                [low, high],
            )

        if op in SET_OPERATORS:
            if not isinstance(value, list | tuple):
                logger.debug("Dropping %s on %s: needs a list", op, node.column)
                return [], []
            return [column, op, PLACEHOLDER], [coerce_number(value)]

        if op in LIKE_OPERATORS:
            if self._config.field_wrapper:
                column = self._config.field_wrapper % column
            wheres = [column, op, PLACEHOLDER]
            if node.value_suffix:
                wheres.append(node.value_suffix)
            if isinstance(value, str):
                if self._config.value_wrapper:
                    value = self._config.value_wrapper % value
                else:
                    value = value.lower()
            return wheres, [value]

        return [column, op, PLACEHOLDER], [coerce_number(value)]


def compile_filters(
    node: FilterNode, config: PaginatorConfig
) -> tuple[list[str], list[Any]]:
    """Compile *node* with *config*; see :class:`FilterCompiler`."""
    return FilterCompiler(config).compile(node)


def compile_request(
    descriptor: RequestDescriptor, config: PaginatorConfig
) -> CompiledQuery:
    """Compile a request descriptor into a :class:`CompiledQuery`."""
    compiler = FilterCompiler(config)
    wheres, params = compiler.compile(descriptor.filters)
    quoted = ((compiler.quote(s.column), s.direction) for s in descriptor.sorts)
    sorts = tuple(
        SortSpec(column=column, direction=direction)
        for column, direction in quoted
        if column
    )
    query = CompiledQuery(
        wheres=tuple(wheres),
        params=tuple(params),
        limit=descriptor.size,
        offset=(descriptor.page - 1) * descriptor.size,
        sorts=sorts,
    )
    logger.debug(
        "Compiled filter: %s (%d params)", query.where_string, len(query.params)
    )
    return query
