"""
Filter tree - the typed form of a client filter expression.

A filter tree is built from three node kinds, decided once while
parsing and never re-inspected by shape afterwards:

* :class:`Comparison` - a leaf predicate ``column operator value``.
* :class:`Group` - an ordered, parenthesised list of sibling nodes.
* :class:`OperatorToken` - a boolean connector sitting between siblings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar, Union

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

T = TypeVar("T")


@dataclass(frozen=True)
class Comparison:
    """Leaf predicate."""

    column: str
    operator: str
    value: Any = None
    value_suffix: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "comparison",
            "column": self.column,
            "operator": self.operator,
            "value": self.value,
        }
        if self.value_suffix:
            data["value_suffix"] = self.value_suffix
        return data


@dataclass(frozen=True)
class OperatorToken:
    """Boolean connector (``AND`` / ``OR``)."""

    symbol: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "operator", "symbol": self.symbol}


@dataclass(frozen=True)
class Group:
    """Parenthesised composite of sibling nodes."""

    children: tuple[FilterNode, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.children)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "group",
            "children": [child.to_dict() for child in self.children],
        }


FilterNode = Union[Comparison, Group, OperatorToken]


def interleave(
    items: Sequence[T],
    is_connector: Callable[[T], bool],
    make_connector: Callable[[], T],
) -> list[T]:
    """
    Return *items* with exactly one connector between consecutive operands.

    Missing connectors are filled in with ``make_connector()``; leading,
    trailing and repeated connectors are dropped.
    """
    out: list[T] = []
    for item in items:
        if is_connector(item):
            if out and not is_connector(out[-1]):
                out.append(item)
            continue
        if out and not is_connector(out[-1]):
            out.append(make_connector())
        out.append(item)
    if out and is_connector(out[-1]):
        out.pop()
    return out


def iter_comparisons(node: FilterNode) -> list[Comparison]:
    """Flatten *node* into its comparisons, left to right."""
    if isinstance(node, Comparison):
        return [node]
    if isinstance(node, Group):
        found: list[Comparison] = []
        for child in node.children:
            found.extend(iter_comparisons(child))
        return found
    return []
