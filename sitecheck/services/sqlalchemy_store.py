"""PersistenceService backed by async SQLAlchemy.

Each call runs in its own short transaction, so a failed insert never leaves a
half-written batch behind and never poisons the next call.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sitecheck.db.models import (
    Base,
    ChecklistItemModel,
    ChecklistModel,
    FloorModel,
    RoomModel,
    UnitModel,
    VerificationRecordModel,
)
from sitecheck.errors import DuplicateKeyError, PersistenceError
from sitecheck.services.persistence import Filters, PersistenceService, Row, Table

logger = logging.getLogger(__name__)

TABLE_MODELS: dict[Table, type[Base]] = {
    Table.FLOORS: FloorModel,
    Table.UNITS: UnitModel,
    Table.ROOMS: RoomModel,
    Table.CHECKLISTS: ChecklistModel,
    Table.CHECKLIST_ITEMS: ChecklistItemModel,
    Table.VERIFICATION_RECORDS: VerificationRecordModel,
}

# PostgreSQL unique_violation
_UNIQUE_VIOLATION_SQLSTATE = "23505"


def _is_duplicate(exc: IntegrityError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = str(orig).lower()
    return "unique" in message or "duplicate" in message


def _to_row(obj: Base) -> Row:
    return {attr.key: getattr(obj, attr.key) for attr in obj.__mapper__.column_attrs}


class SQLAlchemyPersistence(PersistenceService):
    """Table-style CRUD over the SiteCheck declarative models."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    def _resolve(self, table: Table | str) -> tuple[Table, type[Base]]:
        try:
            table = Table(table)
        except ValueError as e:
            raise PersistenceError(f"Unknown table: {table}") from e
        return table, TABLE_MODELS[table]

    def _column(self, model: type[Base], name: str, table: Table) -> Any:
        column = model.__table__.c.get(name)
        if column is None:
            raise PersistenceError(f"Unknown column {name!r} on {table.value}", table=table.value)
        return column

    def _where(self, model: type[Base], filters: Filters | None, table: Table) -> list:
        clauses = []
        for name, value in (filters or {}).items():
            column = self._column(model, name, table)
            if value is None:
                clauses.append(column.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                clauses.append(column.in_(list(value)))
            else:
                clauses.append(column == value)
        return clauses

    def _order(self, model: type[Base], order_by: Sequence[str] | None, table: Table) -> list:
        ordering = []
        for entry in order_by or ():
            descending = entry.startswith("-")
            column = self._column(model, entry.lstrip("-"), table)
            ordering.append(column.desc() if descending else column.asc())
        return ordering

    def _check_columns(self, model: type[Base], row: Row, table: Table) -> None:
        for name in row:
            self._column(model, name, table)

    async def select(
        self,
        table: Table,
        filters: Filters | None = None,
        order_by: Sequence[str] | None = None,
    ) -> list[Row]:
        table, model = self._resolve(table)
        stmt = (
            select(model)
            .where(*self._where(model, filters, table))
            .order_by(*self._order(model, order_by, table))
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [_to_row(obj) for obj in result.scalars()]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Select on {table.value} failed: {e}", table=table.value) from e

    async def insert(self, table: Table, rows: Sequence[Row]) -> list[Row]:
        if not rows:
            return []

        table, model = self._resolve(table)
        for row in rows:
            self._check_columns(model, row, table)
        objects = [model(**row) for row in rows]

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add_all(objects)
                    await session.flush()
                    inserted = [_to_row(obj) for obj in objects]
        except IntegrityError as e:
            if _is_duplicate(e):
                raise DuplicateKeyError(
                    f"Duplicate key inserting into {table.value}: {e.orig}", table=table.value
                ) from e
            raise PersistenceError(f"Insert into {table.value} failed: {e.orig}", table=table.value) from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Insert into {table.value} failed: {e}", table=table.value) from e

        logger.debug("Inserted %d rows into %s", len(inserted), table.value)
        return inserted

    async def update(self, table: Table, values: Row, filters: Filters) -> Row:
        table, model = self._resolve(table)
        if not filters:
            raise PersistenceError(f"Refusing unfiltered update on {table.value}", table=table.value)
        self._check_columns(model, values, table)
        stmt = select(model).where(*self._where(model, filters, table))

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    matches = (await session.execute(stmt)).scalars().all()
                    if len(matches) != 1:
                        raise PersistenceError(
                            f"Update on {table.value} expected one row for {dict(filters)}, "
                            f"found {len(matches)}",
                            table=table.value,
                        )
                    obj = matches[0]
                    for name, value in values.items():
                        setattr(obj, name, value)
                    await session.flush()
                    updated = _to_row(obj)
        except IntegrityError as e:
            if _is_duplicate(e):
                raise DuplicateKeyError(
                    f"Duplicate key updating {table.value}: {e.orig}", table=table.value
                ) from e
            raise PersistenceError(f"Update on {table.value} failed: {e.orig}", table=table.value) from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Update on {table.value} failed: {e}", table=table.value) from e

        return updated

    async def delete(self, table: Table, filters: Filters) -> int:
        table, model = self._resolve(table)
        if not filters:
            raise PersistenceError(f"Refusing unfiltered delete on {table.value}", table=table.value)
        stmt = delete(model).where(*self._where(model, filters, table))
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    return result.rowcount
        except SQLAlchemyError as e:
            raise PersistenceError(f"Delete on {table.value} failed: {e}", table=table.value) from e
