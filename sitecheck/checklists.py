"""Checklist definitions: headers and their ordered, scoped items."""

from __future__ import annotations

import logging
from uuid import UUID

from sitecheck.errors import ChecklistNotFound, ItemInUse, ItemNotFound
from sitecheck.models import Checklist, ChecklistItem, ChecklistStatus, ItemScope, enum_value
from sitecheck.services.persistence import PersistenceService, Table

logger = logging.getLogger(__name__)


class ChecklistStore:
    """CRUD for checklist definitions over the persistence service.

    Items can be added in any status. An item can only be removed while it has
    no verification records; materialized records are never deleted.
    """

    def __init__(self, store: PersistenceService):
        self.store = store

    async def create_checklist(
        self,
        project_id: str,
        name: str,
        description: str | None = None,
        created_by: str | None = None,
    ) -> Checklist:
        checklist = Checklist(
            project_id=project_id,
            name=name,
            description=(description or "").strip() or None,
            status=ChecklistStatus.DRAFT,
            created_by=created_by,
        )
        row = _to_row(checklist)
        [stored] = await self.store.insert(Table.CHECKLISTS, [row])
        logger.info("Created checklist %s (%s) for project %s", checklist.id, checklist.name, project_id)
        return Checklist.model_validate(stored)

    async def get_checklist(self, checklist_id: UUID) -> Checklist:
        rows = await self.store.select(Table.CHECKLISTS, {"id": checklist_id})
        if not rows:
            raise ChecklistNotFound(checklist_id)
        return Checklist.model_validate(rows[0])

    async def list_checklists(self, project_id: str | None = None) -> list[Checklist]:
        """Return checklists, newest first."""
        filters = {"project_id": project_id} if project_id is not None else None
        rows = await self.store.select(Table.CHECKLISTS, filters, order_by=["-created_at"])
        return [Checklist.model_validate(row) for row in rows]

    async def set_status(self, checklist_id: UUID, status: ChecklistStatus) -> Checklist:
        row = await self.store.update(
            Table.CHECKLISTS, {"status": ChecklistStatus(status).value}, {"id": checklist_id}
        )
        return Checklist.model_validate(row)

    async def list_items(self, checklist_id: UUID) -> list[ChecklistItem]:
        rows = await self.store.select(
            Table.CHECKLIST_ITEMS, {"checklist_id": checklist_id}, order_by=["order"]
        )
        return [ChecklistItem.model_validate(row) for row in rows]

    async def get_item(self, item_id: UUID) -> ChecklistItem:
        rows = await self.store.select(Table.CHECKLIST_ITEMS, {"id": item_id})
        if not rows:
            raise ItemNotFound(item_id)
        return ChecklistItem.model_validate(rows[0])

    async def add_item(
        self,
        checklist_id: UUID,
        name: str,
        scope: ItemScope = ItemScope.UNIT,
    ) -> ChecklistItem:
        """Append an item after the existing ones."""
        await self.get_checklist(checklist_id)
        existing = await self.list_items(checklist_id)
        next_order = max((item.order for item in existing), default=-1) + 1

        item = ChecklistItem(checklist_id=checklist_id, name=name, order=next_order, scope=scope)
        [stored] = await self.store.insert(Table.CHECKLIST_ITEMS, [_to_row(item)])
        return ChecklistItem.model_validate(stored)

    async def remove_item(self, item_id: UUID) -> None:
        records = await self.store.select(Table.VERIFICATION_RECORDS, {"item_id": item_id})
        if records:
            raise ItemInUse(item_id, len(records))
        removed = await self.store.delete(Table.CHECKLIST_ITEMS, {"id": item_id})
        if not removed:
            raise ItemNotFound(item_id)


def _to_row(model: Checklist | ChecklistItem) -> dict:
    return {key: enum_value(value) for key, value in model.model_dump().items()}
