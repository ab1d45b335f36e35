"""Canonical record store backed by SQLAlchemy.

The store exposes the small table-oriented contract the sync coordinator relies
on: bulk read, row insert, update and delete by column filter, and upsert on a
key column. Every call runs in its own short transaction; nothing spans
multiple calls.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from enum import Enum
from typing import Any, Literal, Protocol, runtime_checkable

from sqlalchemy import Date, Table, delete, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ufl_records.db.models import ChampionRow, FighterRow, FightRow

logger = logging.getLogger(__name__)

Collection = Literal["fighters", "fights", "champions"]

_TABLES: dict[str, Table] = {
    "fighters": FighterRow.__table__,
    "fights": FightRow.__table__,
    "champions": ChampionRow.__table__,
}

_SURROGATE_COLUMNS = frozenset({"id"})


class PersistenceError(RuntimeError):
    """Raised when the canonical store cannot complete a read or write."""

    def __init__(self, operation: str, collection: str, cause: BaseException) -> None:
        super().__init__(f"{operation} on '{collection}' failed: {cause}")
        self.operation = operation
        self.collection = collection
        self.cause = cause


@runtime_checkable
class CanonicalStoreProtocol(Protocol):
    async def select_all(self, collection: Collection) -> list[dict[str, Any]]:
        """Return every row of ``collection`` in storage order."""

    async def insert(self, collection: Collection, rows: Sequence[Mapping[str, Any]]) -> None:
        """Append ``rows`` to ``collection``."""

    async def update(
        self,
        collection: Collection,
        values: Mapping[str, Any],
        match: Mapping[str, Any],
    ) -> int:
        """Set ``values`` on every row whose columns equal ``match``; return the row count."""

    async def delete(self, collection: Collection, match: Mapping[str, Any]) -> int:
        """Delete every row whose columns equal ``match``; return the row count."""

    async def upsert(
        self,
        collection: Collection,
        rows: Sequence[Mapping[str, Any]],
        on_conflict: str,
    ) -> None:
        """Insert ``rows``, replacing existing rows that share ``on_conflict``."""


def _table(collection: str) -> Table:
    try:
        return _TABLES[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None


def _coerce(table: Table, values: Mapping[str, Any]) -> dict[str, Any]:
    """Translate model values into column-ready Python values.

    Enums are stored by value and ISO strings destined for date columns are
    parsed, so both ``model_dump()`` and ``model_dump(mode="json")`` payloads
    are accepted.
    """

    coerced: dict[str, Any] = {}
    for key, value in values.items():
        if key not in table.c:
            raise ValueError(f"Unknown column '{key}' for table '{table.name}'")
        if isinstance(value, Enum):
            value = value.value
        if isinstance(table.c[key].type, Date) and isinstance(value, str):
            value = date.fromisoformat(value)
        coerced[key] = value
    return coerced


def _where(table: Table, match: Mapping[str, Any]) -> list[Any]:
    if not match:
        raise ValueError("Refusing to run an unfiltered statement")
    return [table.c[key] == value for key, value in _coerce(table, match).items()]


class SQLAlchemyCanonicalStore(CanonicalStoreProtocol):
    """Canonical store over the ``fighters``, ``fights`` and ``champions`` tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def select_all(self, collection: Collection) -> list[dict[str, Any]]:
        table = _table(collection)
        order_column = table.c.id if "id" in table.c else table.primary_key.columns.values()[0]
        query = select(table).order_by(order_column)
        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                rows = result.mappings().all()
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError("select", collection, exc) from exc

        return [
            {key: value for key, value in row.items() if key not in _SURROGATE_COLUMNS}
            for row in rows
        ]

    async def insert(self, collection: Collection, rows: Sequence[Mapping[str, Any]]) -> None:
        if not rows:
            return
        table = _table(collection)
        payload = [_coerce(table, row) for row in rows]
        await self._execute("insert", collection, insert(table).values(payload))

    async def update(
        self,
        collection: Collection,
        values: Mapping[str, Any],
        match: Mapping[str, Any],
    ) -> int:
        table = _table(collection)
        statement = update(table).where(*_where(table, match)).values(_coerce(table, values))
        return await self._execute("update", collection, statement)

    async def delete(self, collection: Collection, match: Mapping[str, Any]) -> int:
        table = _table(collection)
        return await self._execute("delete", collection, delete(table).where(*_where(table, match)))

    async def upsert(
        self,
        collection: Collection,
        rows: Sequence[Mapping[str, Any]],
        on_conflict: str,
    ) -> None:
        if not rows:
            return
        table = _table(collection)
        payload = [_coerce(table, row) for row in rows]
        try:
            async with self._session_factory() as session:
                dialect = session.bind.dialect.name
                if dialect == "postgresql":
                    statement = postgresql.insert(table).values(payload)
                elif dialect == "sqlite":
                    statement = sqlite.insert(table).values(payload)
                else:
                    raise ValueError(f"Upsert is not supported for dialect '{dialect}'")
                replaced = {
                    column.name: statement.excluded[column.name]
                    for column in table.c
                    if column.name != on_conflict and column.name not in _SURROGATE_COLUMNS
                }
                statement = statement.on_conflict_do_update(
                    index_elements=[table.c[on_conflict]], set_=replaced
                )
                async with session.begin():
                    await session.execute(statement)
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError("upsert", collection, exc) from exc

    async def _execute(self, operation: str, collection: str, statement: Any) -> int:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(statement)
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError(operation, collection, exc) from exc
        logger.debug("%s on %s affected %s row(s)", operation, collection, result.rowcount)
        return result.rowcount or 0


__all__ = [
    "CanonicalStoreProtocol",
    "Collection",
    "PersistenceError",
    "SQLAlchemyCanonicalStore",
]
