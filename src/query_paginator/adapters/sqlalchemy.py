"""SQLAlchemy (async) query executor for compiled paginator queries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import bindparam, func, select, text
from sqlalchemy.exc import SQLAlchemyError

from ..compiler import PLACEHOLDER
from ..exceptions import QueryExecutionError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from sqlalchemy import Select, Subquery, TextClause
    from sqlalchemy.ext.asyncio import AsyncSession

    from ..compiler import CompiledQuery

logger = logging.getLogger("query_paginator.sqlalchemy")

SUBQUERY_ALIAS = "s"


def _statement_name(statement: Select[Any]) -> str:
    froms = statement.get_final_froms()
    if not froms:
        return ""
    return str(getattr(froms[0], "name", "") or "")


def _bound_dialect(session_factory: Any) -> str | None:
    # async_sessionmaker keeps its constructor kwargs on ``kw``.
    bind = getattr(session_factory, "kw", {}).get("bind")
    if bind is None:
        return None
    return str(bind.dialect.name)


def build_where(query: CompiledQuery) -> TextClause | None:
    """
    Turn the ``?`` token stream into a ``text()`` clause with named binds.

    List parameters bind as expanding parameters (``IN`` / ``NOT IN``).
    """
    if not query.wheres:
        return None
    pieces: list[str] = []
    binds = []
    values = iter(query.params)
    for token in query.wheres:
        if token != PLACEHOLDER:
            pieces.append(token.replace(":", "\\:"))
            continue
        name = f"p{len(binds)}"
        value = next(values)
        if isinstance(value, list | tuple):
            binds.append(bindparam(name, value=list(value), expanding=True))
        else:
            binds.append(bindparam(name, value=value))
        pieces.append(f":{name}")
    return text(" ".join(pieces)).bindparams(*binds)


class SQLAlchemyQueryExecutor:
    """
    Runs compiled queries against a base ``Select``.

    The base statement is wrapped as a subquery aliased ``s``; the compiled
    predicate, sorts and projection all target that subquery's columns::

        SELECT ... FROM (<statement>) AS s WHERE ... ORDER BY ... LIMIT ...
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        statement: Select[Any],
        *,
        name: str | None = None,
        dialect: str | None = None,
        row_factory: Callable[[Mapping[str, Any]], Any] = dict,
    ) -> None:
        """
        Args:
            session_factory: Factory returning new ``AsyncSession`` instances.
            statement: Base ``SELECT`` (joins, projections) to paginate.
            name: Table / view name; derived from the statement when omitted.
            dialect: Dialect identifier; read from the sessionmaker's bind
                when omitted.
            row_factory: Converts each result mapping into an envelope item.
        """
        self._session_factory = session_factory
        self._statement = statement
        self._name = name or _statement_name(statement)
        self._dialect = dialect or _bound_dialect(session_factory)
        self._row_factory = row_factory

    @property
    def dialect(self) -> str | None:
        return self._dialect

    @property
    def name(self) -> str:
        return self._name

    async def count(self, query: CompiledQuery) -> int:
        sub = self._subquery()
        stmt = select(func.count()).select_from(sub)
        where = build_where(query)
        if where is not None:
            stmt = stmt.where(where)

        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise QueryExecutionError(str(e), statement=str(stmt)) from e
            return int(result.scalar_one())

    async def fetch(self, query: CompiledQuery, fields: Sequence[str]) -> list[Any]:
        sub = self._subquery()
        columns = [sub.c[f] for f in fields if f in sub.c]
        if len(columns) < len(fields):
            logger.debug(
                "Ignoring unknown fields on %s: %s",
                self._name,
                [f for f in fields if f not in sub.c],
            )
        stmt = select(*columns) if columns else select(sub)
        stmt = stmt.select_from(sub)

        where = build_where(query)
        if where is not None:
            stmt = stmt.where(where)
        for sort in query.sorts:
            stmt = stmt.order_by(text(f"{sort.column} {sort.direction}"))
        if query.limit > 0:
            stmt = stmt.limit(query.limit).offset(query.offset)

        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise QueryExecutionError(str(e), statement=str(stmt)) from e
            return [self._row_factory(row) for row in result.mappings().all()]

    def _subquery(self) -> Subquery:
        return self._statement.subquery(SUBQUERY_ALIAS)
