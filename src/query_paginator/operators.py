"""Comparison operators, boolean connectors and LIKE-family aliases."""

from __future__ import annotations

import re
from enum import Enum
from typing import NamedTuple


class FilterOperator(str, Enum):
    """Canonical comparison operators emitted into the predicate."""

    # Standard comparison
    EQ = "="
    NE = "!="
    NE_ANSI = "<>"
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="

    # Null checks
    IS = "IS"
    IS_NOT = "IS NOT"

    # Set / range
    IN = "IN"
    NOT_IN = "NOT IN"
    BETWEEN = "BETWEEN"
    NOT_BETWEEN = "NOT BETWEEN"

    # Pattern matching
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    ILIKE = "ILIKE"
    NOT_ILIKE = "NOT ILIKE"


class Connector(str, Enum):
    """Boolean connectors allowed between sibling filter nodes."""

    AND = "AND"
    OR = "OR"


class LikeAlias(NamedTuple):
    """How a LIKE-family alias rewrites its value."""

    operator: FilterOperator
    leading: bool
    trailing: bool


LIKE_ALIASES: dict[str, LikeAlias] = {
    "LIKE": LikeAlias(FilterOperator.LIKE, True, True),
    "NOT LIKE": LikeAlias(FilterOperator.NOT_LIKE, True, True),
    "ILIKE": LikeAlias(FilterOperator.ILIKE, True, True),
    "NOT ILIKE": LikeAlias(FilterOperator.NOT_ILIKE, True, True),
    "CONTAINS": LikeAlias(FilterOperator.LIKE, True, True),
    "ICONTAINS": LikeAlias(FilterOperator.ILIKE, True, True),
    "NOT CONTAINS": LikeAlias(FilterOperator.NOT_LIKE, True, True),
    "STARTSWITH": LikeAlias(FilterOperator.LIKE, False, True),
    "ISTARTSWITH": LikeAlias(FilterOperator.ILIKE, False, True),
    "NOT STARTSWITH": LikeAlias(FilterOperator.NOT_LIKE, False, True),
    "ENDSWITH": LikeAlias(FilterOperator.LIKE, True, False),
    "IENDSWITH": LikeAlias(FilterOperator.ILIKE, True, False),
    "NOT ENDSWITH": LikeAlias(FilterOperator.NOT_LIKE, True, False),
    # Escaped but never wrapped: exact, case-folded match through LIKE
    "MATCH": LikeAlias(FilterOperator.LIKE, False, False),
}

# Textual spellings of the comparison operators
_OP_ALIASES: dict[str, FilterOperator] = {
    "EQ": FilterOperator.EQ,
    "NE": FilterOperator.NE,
    "NEQ": FilterOperator.NE,
    "GT": FilterOperator.GT,
    "GTE": FilterOperator.GE,
    "GE": FilterOperator.GE,
    "LT": FilterOperator.LT,
    "LTE": FilterOperator.LE,
    "LE": FilterOperator.LE,
}

LIKE_OPERATORS: frozenset[str] = frozenset(
    op.value
    for op in (
        FilterOperator.LIKE,
        FilterOperator.NOT_LIKE,
        FilterOperator.ILIKE,
        FilterOperator.NOT_ILIKE,
    )
)
NULL_OPERATORS: frozenset[str] = frozenset(
    op.value for op in (FilterOperator.IS, FilterOperator.IS_NOT)
)
SET_OPERATORS: frozenset[str] = frozenset(
    op.value for op in (FilterOperator.IN, FilterOperator.NOT_IN)
)
RANGE_OPERATORS: frozenset[str] = frozenset(
    op.value for op in (FilterOperator.BETWEEN, FilterOperator.NOT_BETWEEN)
)

_VALID_OPERATORS: frozenset[str] = frozenset(m.value for m in FilterOperator)

# The operator slot is interpolated into SQL text.
_OPERATOR_STRIP_RE = re.compile(r"[^A-Za-z=<>\-+^/*%&! ]+")
_SPACES_RE = re.compile(r" +")


def sanitize_operator(raw: str) -> str:
    """Upper-case *raw* and strip every character outside the operator alphabet."""
    cleaned = _OPERATOR_STRIP_RE.sub("", raw).upper()
    return _SPACES_RE.sub(" ", cleaned).strip()


def normalize_operator(raw: str) -> str | None:
    """
    Return the canonical spelling of a comparison operator or LIKE alias.

    Returns ``None`` for anything outside the known operator set; such
    comparisons are discarded by the parser rather than emitted.
    """
    op = sanitize_operator(raw)
    if op in _OP_ALIASES:
        return _OP_ALIASES[op].value
    if op in _VALID_OPERATORS or op in LIKE_ALIASES:
        return op
    return None


def normalize_connector(raw: str) -> Connector | None:
    """Return the connector spelled by *raw*, or ``None``."""
    op = sanitize_operator(raw)
    try:
        return Connector(op)
    except ValueError:
        return None
