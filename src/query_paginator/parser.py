"""
FilterGrammarParser - array-of-arrays filter expression -> filter tree.

Grammar (JSON)::

    ["AND"]                      connector token
    ["name", "john"]             implicit equality (``IS`` for null)
    ["age", ">", 18]             explicit comparison
    [[...], [...], ...]          group of sibling nodes, nested freely

Malformed pieces are dropped rather than reported: an unparseable
expression simply yields an empty :class:`Group`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .exceptions import FilterParseError
from .nodes import Comparison, FilterNode, Group, OperatorToken, interleave
from .operators import (
    LIKE_ALIASES,
    FilterOperator,
    normalize_connector,
    normalize_operator,
)
from .values import escape_like, fold_whitespace, stringify, wrap_like

if TYPE_CHECKING:
    from .config import PaginatorConfig

logger = logging.getLogger("query_paginator.parser")

MAX_DEPTH = 32


class FilterGrammarParser:
    """Decode filter expressions into :class:`FilterNode` trees."""

    def __init__(self, config: PaginatorConfig) -> None:
        self._config = config
        self._dialect = config.sql_dialect
        self._default_connector = config.operator

    # ------------------------------------------------------------------ #
    # Public API                                                          #
    # ------------------------------------------------------------------ #

    def parse(self, raw: Any) -> FilterNode:
        """Parse a decoded expression; anything unusable yields ``Group()``."""
        if not isinstance(raw, list) or not raw:
            return Group()
        node = self._parse_array(raw, depth=0)
        if node is None or isinstance(node, OperatorToken):
            return Group()
        return node

    def parse_json(self, text: str | bytes, *, strict: bool = False) -> FilterNode:
        """
        Decode JSON *text* and parse it.

        With ``strict=True`` undecodable or non-array input raises
        :class:`FilterParseError`; otherwise it is logged and the empty
        filter is returned.
        """
        try:
            data = self._config.unmarshal(text)
        except (ValueError, TypeError, RecursionError) as exc:
            if strict:
                raise FilterParseError(
                    f"Invalid filter JSON: {exc}", raw=text
                ) from exc
            logger.warning("Ignoring unparseable filter expression: %s", exc)
            return Group()
        if not isinstance(data, list):
            if strict:
                raise FilterParseError(
                    "Filter expression must be an array", raw=text
                )
            logger.warning("Ignoring non-array filter expression")
            return Group()
        return self.parse(data)

    # ------------------------------------------------------------------ #
    # Internal - recursive descent                                        #
    # ------------------------------------------------------------------ #

    def _parse_array(self, arr: list[Any], depth: int) -> FilterNode | None:
        if depth > MAX_DEPTH:
            logger.warning(
                "Filter expression nested deeper than %d; ignored", MAX_DEPTH
            )
            return None

        arity = len(arr)
        column: str | None = None
        operator: str | None = None
        connector: str | None = None
        value: Any = None
        resolved = False
        children: list[FilterNode] = []

        for index, item in enumerate(arr):
            if isinstance(item, list) and not resolved:
                child = self._parse_array(item, depth + 1)
                if child is not None:
                    children.append(child)
            elif arity == 1:
                if isinstance(item, str):
                    found = normalize_connector(item)
                    connector = found.value if found is not None else None
                    resolved = True
            elif arity == 2:
                if index == 0 and isinstance(item, str):
                    column = item
                    operator = FilterOperator.EQ.value
                    resolved = True
                elif index == 1:
                    value = item
                    if item is None:
                        operator = FilterOperator.IS.value
            elif arity == 3:
                if index == 0 and isinstance(item, str):
                    column = item
                    resolved = True
                elif index == 1 and isinstance(item, str):
                    operator = normalize_operator(item)
                    resolved = True
                elif index == 2:
                    value = item

        if children:
            return self._group(children)
        if connector is not None:
            return OperatorToken(connector)
        if not column or operator is None:
            return None
        if operator in LIKE_ALIASES:
            return self._like(column, operator, value)
        return Comparison(column=column, operator=operator, value=value)

    def _group(self, children: list[FilterNode]) -> Group | None:
        # Empty nested groups would leave dangling connectors behind.
        operands = [c for c in children if not (isinstance(c, Group) and not c)]
        siblings = interleave(
            operands,
            lambda node: isinstance(node, OperatorToken),
            lambda: OperatorToken(self._default_connector),
        )
        if not siblings:
            return None
        return Group(tuple(siblings))

    def _like(self, column: str, alias_name: str, raw_value: Any) -> Comparison:
        alias = LIKE_ALIASES[alias_name]
        text = escape_like(stringify(raw_value), self._dialect.escape_char)
        if self._config.smart_search:
            text = fold_whitespace(text)
        return Comparison(
            column=column,
            operator=alias.operator.value,
            value=wrap_like(text, leading=alias.leading, trailing=alias.trailing),
            value_suffix=self._dialect.escape_suffix,
        )


def parse_filters(raw: Any, config: PaginatorConfig) -> FilterNode:
    """Parse a nested-array value or its JSON text into a filter tree."""
    parser = FilterGrammarParser(config)
    if isinstance(raw, str | bytes):
        if not raw.strip():
            return Group()
        return parser.parse_json(raw)
    return parser.parse(raw)
