"""Execution tracking: record status, notes and photos per (item, location).

Every write is an upsert against the in-memory ``RecordIndex``. After each write
the index holds the row returned by the persistence service, not the payload
that was sent.
"""

from __future__ import annotations

import time
from pathlib import PurePosixPath
from uuid import UUID

import structlog

from sitecheck.checklists import ChecklistStore
from sitecheck.errors import (
    DuplicateKeyError,
    ItemNotFound,
    LocationNotFound,
    ScopeMismatch,
    StorageError,
)
from sitecheck.execution.index import RecordIndex
from sitecheck.execution.progress import LocationProgress, location_progress, overall_percent
from sitecheck.hierarchy import LocationHierarchy, load_hierarchy
from sitecheck.models import (
    Checklist,
    ChecklistItem,
    ItemScope,
    LocationRef,
    VerificationRecord,
    VerificationStatus,
    utcnow,
)
from sitecheck.services.identity import IdentityService
from sitecheck.services.persistence import PersistenceService, Row, Table
from sitecheck.services.storage import BlobStorage

logger = structlog.get_logger(__name__)


class ExecutionTracker:
    """Tracks verification state of one activated checklist."""

    def __init__(
        self,
        store: PersistenceService,
        checklist: Checklist,
        items: list[ChecklistItem],
        records: list[VerificationRecord],
        identity: IdentityService,
        storage: BlobStorage | None = None,
        hierarchy: LocationHierarchy | None = None,
    ):
        self.store = store
        self.checklist = checklist
        self.identity = identity
        self.storage = storage
        self.items = items
        self.index = RecordIndex(records)
        self.hierarchy = hierarchy
        self._log = logger.bind(checklist_id=str(checklist.id))

    @classmethod
    async def open(
        cls,
        store: PersistenceService,
        checklist_id: UUID,
        identity: IdentityService,
        storage: BlobStorage | None = None,
    ) -> ExecutionTracker:
        checklists = ChecklistStore(store)
        checklist = await checklists.get_checklist(checklist_id)
        items = await checklists.list_items(checklist_id)
        records = await load_records(store, checklist_id)
        hierarchy = await load_hierarchy(store, checklist.project_id)
        return cls(store, checklist, items, records, identity, storage, hierarchy)

    async def refresh(self) -> None:
        checklists = ChecklistStore(self.store)
        self.checklist = await checklists.get_checklist(self.checklist.id)
        self.items = await checklists.list_items(self.checklist.id)
        self.index = RecordIndex(await load_records(self.store, self.checklist.id))
        self.hierarchy = await load_hierarchy(self.store, self.checklist.project_id)

    def item(self, item_id: UUID) -> ChecklistItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise ItemNotFound(item_id)

    def record(self, item_id: UUID, location: LocationRef) -> VerificationRecord | None:
        item = self.item(item_id)
        return self.index.get(item.id, _scoped(item, location))

    # ---- writes ----

    async def set_status(
        self, item_id: UUID, location: LocationRef, status: VerificationStatus
    ) -> VerificationRecord:
        """Set the verification result and stamp who verified it and when."""
        status = VerificationStatus(status)
        values: Row = {
            "status": status.value,
            "verified_at": utcnow(),
            "verified_by": await self.identity.current_actor_id(),
        }
        return await self._upsert(item_id, location, values)

    async def set_note(self, item_id: UUID, location: LocationRef, text: str | None) -> VerificationRecord:
        note = text if text and text.strip() else None
        return await self._upsert(item_id, location, {"note": note})

    async def attach_photo(self, item_id: UUID, location: LocationRef, photo_url: str) -> VerificationRecord:
        return await self._upsert(item_id, location, {"photo_url": photo_url})

    async def upload_photo(
        self,
        item_id: UUID,
        location: LocationRef,
        filename: str,
        data: bytes,
    ) -> VerificationRecord:
        """Store the photo bytes and attach their public URL to the record."""
        if self.storage is None:
            raise StorageError("No photo storage is configured")
        item = self.item(item_id)
        scoped = _scoped(item, location)
        if self.index.get(item.id, scoped) is None:
            self._require_location(scoped)

        name = PurePosixPath(filename.replace("\\", "/")).name or "photo"
        path = f"{self.checklist.id}/{int(time.time() * 1000)}_{name}"
        stored_path = await self.storage.upload(path, data)
        url = self.storage.get_public_url(stored_path)
        return await self.attach_photo(item_id, location, url)

    async def _upsert(self, item_id: UUID, location: LocationRef, values: Row) -> VerificationRecord:
        item = self.item(item_id)
        location = _scoped(item, location)
        existing = self.index.get(item.id, location)

        if existing is not None:
            row = await self.store.update(
                Table.VERIFICATION_RECORDS, values, {"id": existing.id}
            )
        else:
            row = await self._create_missing(item, location, values)

        record = VerificationRecord.model_validate(row)
        self.index.put(record)
        return record

    async def _create_missing(self, item: ChecklistItem, location: LocationRef, values: Row) -> Row:
        self._require_location(location)
        # Repair path: the pair was never materialized (structure grew after activation).
        self._log.warning(
            "verification_record_missing",
            item_id=str(item.id),
            location=location.key,
        )
        skeleton = VerificationRecord.skeleton(self.checklist.id, item.id, location, **values)
        try:
            [row] = await self.store.insert(Table.VERIFICATION_RECORDS, [skeleton.to_row()])
            return row
        except DuplicateKeyError:
            # Created concurrently by someone else; update theirs instead.
            rows = await self.store.select(
                Table.VERIFICATION_RECORDS,
                {
                    "checklist_id": self.checklist.id,
                    "item_id": item.id,
                    "location_key": location.key,
                },
            )
            if not rows:
                raise
            return await self.store.update(
                Table.VERIFICATION_RECORDS, values, {"id": rows[0]["id"]}
            )

    def _require_location(self, location: LocationRef) -> None:
        if self.hierarchy is not None and not self.hierarchy.contains(location):
            raise LocationNotFound(location.key, self.checklist.project_id)

    # ---- progress ----

    @property
    def overall_percent(self) -> int:
        return overall_percent(self.index)

    def location_progress(self, location: LocationRef) -> LocationProgress | None:
        return location_progress(self.index, self.items, location)


async def load_records(store: PersistenceService, checklist_id: UUID) -> list[VerificationRecord]:
    rows = await store.select(Table.VERIFICATION_RECORDS, {"checklist_id": checklist_id})
    return [VerificationRecord.model_validate(row) for row in rows]


def _scoped(item: ChecklistItem, location: LocationRef) -> LocationRef:
    """Narrow ``location`` to the item's scope, rejecting references that are too shallow."""
    if item.scope is ItemScope.UNIT and location.unit_id is None:
        raise ScopeMismatch(f"Item {item.name!r} is verified per unit; a unit_id is required")
    if item.scope is ItemScope.ROOM and location.room_id is None:
        raise ScopeMismatch(f"Item {item.name!r} is verified per room; a room_id is required")
    return location.narrowed_to(item.scope)
