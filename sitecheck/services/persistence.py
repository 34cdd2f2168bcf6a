"""Table-style persistence contract consumed by the engine.

Rows are plain dicts keyed by column name. Filters map a column to a value
(equality, ``None`` meaning IS NULL) or to a list/tuple/set (IN). ``order_by``
entries are column names, prefixed with ``-`` for descending order.

Implementations raise ``DuplicateKeyError`` when a unique key is violated and
``PersistenceError`` for everything else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

Row = dict[str, Any]
Filters = Mapping[str, Any]


class Table(str, Enum):
    FLOORS = "floors"
    UNITS = "units"
    ROOMS = "rooms"
    CHECKLISTS = "checklists"
    CHECKLIST_ITEMS = "checklist_items"
    VERIFICATION_RECORDS = "verification_records"


class PersistenceService(ABC):
    """Abstract CRUD service over named tables."""

    @abstractmethod
    async def select(
        self,
        table: Table,
        filters: Filters | None = None,
        order_by: Sequence[str] | None = None,
    ) -> list[Row]:
        """Return every row matching ``filters`` in ``order_by`` order."""

    @abstractmethod
    async def insert(self, table: Table, rows: Sequence[Row]) -> list[Row]:
        """Insert ``rows`` atomically and return them as stored.

        Raises:
            DuplicateKeyError: If any row violates a unique key; nothing is written
            PersistenceError: For any other failure; nothing is written
        """

    @abstractmethod
    async def update(self, table: Table, values: Row, filters: Filters) -> Row:
        """Apply ``values`` to the single row matching ``filters``.

        Raises:
            PersistenceError: If no row or more than one row matches
        """

    @abstractmethod
    async def delete(self, table: Table, filters: Filters) -> int:
        """Delete matching rows and return how many were removed."""
