"""
Dialect lookup table - SQL text conventions per relational backend.

Each entry carries the LIKE case-folding wrapper, the escape character
(and the ``ESCAPE`` clause declaring it) and the SQLAlchemy dialect whose
identifier preparer quotes column references.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING

from sqlalchemy.dialects import mysql, postgresql, sqlite

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine.interfaces import Dialect as SQLAlchemyDialect
    from sqlalchemy.sql.compiler import IdentifierPreparer

# Without a preparer the reference is emitted bare, so it must be a plain word.
_BARE_IDENTIFIER_RE = re.compile(r"[^A-Za-z0-9_]+")


@dataclass(frozen=True)
class Dialect:
    """SQL text conventions for one backend."""

    name: str
    field_wrapper: str = "LOWER(%s)"
    escape_char: str = ""
    escape_suffix: str = ""
    factory: Callable[[], SQLAlchemyDialect] | None = None

    @cached_property
    def _preparer(self) -> IdentifierPreparer | None:
        if self.factory is None:
            return None
        return self.factory().identifier_preparer

    def quote(self, identifier: str) -> str:
        """
        Quote *identifier* for the dialect.

        Dialects without a preparer emit the identifier bare, stripped of
        everything outside ``[A-Za-z0-9_]``; the result may be empty.
        """
        preparer = self._preparer
        if preparer is None:
            return _BARE_IDENTIFIER_RE.sub("", identifier)
        return preparer.quote_identifier(identifier)


DEFAULT_DIALECT = Dialect(name="default")

_POSTGRES = Dialect(
    name="postgresql",
    field_wrapper="LOWER((%s)::text)",
    escape_char="\\",
    escape_suffix="ESCAPE '\\'",
    factory=postgresql.dialect,
)

DIALECTS: dict[str, Dialect] = {
    "postgresql": _POSTGRES,
    "postgres": _POSTGRES,
    "sqlite": Dialect(
        name="sqlite",
        escape_char="\\",
        escape_suffix="ESCAPE '\\'",
        factory=sqlite.dialect,
    ),
    # MySQL string literals treat the backslash as an escape themselves.
    "mysql": Dialect(
        name="mysql",
        escape_char="\\",
        escape_suffix="ESCAPE '\\\\'",
        factory=mysql.dialect,
    ),
    "mariadb": Dialect(
        name="mariadb",
        escape_char="\\",
        escape_suffix="ESCAPE '\\\\'",
        factory=mysql.dialect,
    ),
}


def get_dialect(name: str | None) -> Dialect:
    """Look up *name* (case-insensitive); unknown names get the default."""
    if not name:
        return DEFAULT_DIALECT
    return DIALECTS.get(name.lower(), DEFAULT_DIALECT)
