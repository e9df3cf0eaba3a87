"""Column-reference resolution and field-list sanitising."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from pydantic.alias_generators import to_pascal

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

_FIELD_STRIP_RE = re.compile(r"[^A-Za-z0-9_.,]+")

JOIN_SEPARATOR = "__"


def resolve_column(
    reference: str, *, rename: Callable[[str], str] = to_pascal
) -> str:
    """
    Rewrite a dotted ``relation.field`` reference into a joined-table alias.

    The first segment is renamed into the data-access layer's alias casing
    (``user`` -> ``User``); it and the remaining segments are joined with
    ``__``.  Single-segment references pass through unchanged::

        >>> resolve_column("user.average_point")
        'User__average_point'
        >>> resolve_column("id")
        'id'
    """
    segments = reference.split(".")
    if len(segments) == 1:
        return reference
    return JOIN_SEPARATOR.join([rename(segments[0]), *segments[1:]])


def sanitize_field(raw: str) -> str:
    """Strip every character outside ``[A-Za-z0-9_.,]``."""
    return _FIELD_STRIP_RE.sub("", raw)


def sanitize_fields(raw: Any) -> list[str]:
    """Split a comma-separated field list (or list of names) and sanitise it."""
    if not raw:
        return []
    if isinstance(raw, str):
        candidates = raw.split(",")
    elif isinstance(raw, list | tuple):
        joined = ",".join(str(item) for item in raw if item is not None)
        candidates = joined.split(",")
    else:
        return []
    fields: list[str] = []
    for candidate in candidates:
        cleaned = sanitize_field(candidate)
        if cleaned:
            fields.append(cleaned)
    return fields


def select_fields(
    requested: Sequence[str],
    allowed: Sequence[str] | None,
    *,
    selector_enabled: bool,
) -> list[str]:
    """
    Decide the projected columns, resolved and de-duplicated.

    * server list + client list + selection enabled: client fields that
      appear in the server list, in client order;
    * server list only (or selection disabled): the whole server list;
    * client list only with selection enabled: the whole client list;
    * otherwise: nothing (select every column).
    """
    if allowed:
        if requested and selector_enabled:
            names = [f for f in requested if f in allowed]
        else:
            names = list(allowed)
    elif requested and selector_enabled:
        names = list(requested)
    else:
        names = []

    selects: list[str] = []
    for name in names:
        resolved = resolve_column(name)
        if resolved not in selects:
            selects.append(resolved)
    return selects
