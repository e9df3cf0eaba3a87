"""
Value normalisation helpers used by the filter parser and compiler.

These are pure-Python helpers with no infrastructure dependencies.
"""

from __future__ import annotations

import re
from typing import Any

# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------

_INTEGRAL_RE = re.compile(r"^[0-9]+$")

# Beyond this magnitude floats render in exponent form and never look integral.
_MAX_PLAIN_FLOAT = 1e21


def _render_float(value: float) -> str:
    if value.is_integer() and abs(value) < _MAX_PLAIN_FLOAT:
        return str(int(value))
    return repr(value)


def coerce_number(value: Any) -> Any:
    """
    Convert integral floats to ``int``, recursing into lists.

    JSON decoders hand back ``18.0`` for ``18.0`` and friends; binding such
    a float against an integer column trips up some drivers.  Only values
    whose plain rendering matches ``^[0-9]+$`` are converted.
    """
    if isinstance(value, list | tuple):
        return [coerce_number(v) for v in value]
    if isinstance(value, float):
        rendered = _render_float(value)
        if _INTEGRAL_RE.match(rendered):
            return int(rendered)
    return value


# ---------------------------------------------------------------------------
# LIKE values
# ---------------------------------------------------------------------------

_WHITESPACE_RE = re.compile(r"\s+")


def stringify(value: Any) -> str:
    """Render a decoded JSON scalar the way it would appear in the request."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _render_float(value)
    return str(value)


def escape_like(value: str, escape_char: str = "") -> str:
    """
    Escape the escape character itself and ``%`` in *value*.

    With an empty *escape_char* the value is returned untouched; the
    dialect then has no escape character to declare.  ``_`` is left as is
    and still matches any single character, so ``MATCH`` and the anchored
    aliases are not strictly literal.
    """
    if not escape_char:
        return value
    value = value.replace(escape_char, escape_char * 2)
    return value.replace("%", f"{escape_char}%")


def fold_whitespace(value: str) -> str:
    """Fold whitespace runs to ``%`` for loose multi-word matching."""
    return _WHITESPACE_RE.sub("%", value)


def wrap_like(value: str, *, leading: bool, trailing: bool) -> str:
    """Surround *value* with ``%`` wildcards."""
    return f"{'%' if leading else ''}{value}{'%' if trailing else ''}"
