"""Checklist activation: expand items against the location hierarchy.

Activation writes one pending verification record per (item, location) pair at
the item's scope, then moves the checklist from draft to active.

Re-running an activation is safe. Pairs that already have a record are skipped
through the duplicate-key path, so a retried or concurrent activation converges
on the same record set, and items or locations added since the last run simply
gain their missing records.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from uuid import UUID

import structlog

from sitecheck.checklists import ChecklistStore
from sitecheck.errors import (
    ActivationFailed,
    ActivationPreconditionError,
    DuplicateKeyError,
    EmptyChecklist,
    NoRoomsDefined,
    NoUnitsDefined,
    PersistenceError,
)
from sitecheck.hierarchy import LocationHierarchy, load_hierarchy
from sitecheck.models import (
    Checklist,
    ChecklistItem,
    ChecklistStatus,
    ItemScope,
    VerificationRecord,
)
from sitecheck.services.persistence import PersistenceService, Row, Table

logger = structlog.get_logger(__name__)

DEFAULT_BATCH_SIZE = 500


@dataclass(slots=True)
class ActivationPlan:
    """Everything an activation would write, computed without writing."""

    checklist: Checklist
    items: list[ChecklistItem]
    hierarchy: LocationHierarchy
    records: list[VerificationRecord] = field(default_factory=list)
    orphans_skipped: int = 0

    @property
    def expected(self) -> int:
        return count_expected_records(self.items, self.hierarchy)

    @property
    def expected_by_scope(self) -> dict[ItemScope, int]:
        totals = {scope: 0 for scope in ItemScope}
        for item in self.items:
            totals[item.scope] += self.hierarchy.count(item.scope)
        return totals

    @property
    def blocking_error(self) -> ActivationPreconditionError | None:
        return precondition_error(self.checklist, self.items, self.hierarchy)


@dataclass(slots=True)
class ActivationResult:
    checklist_id: UUID
    expected: int
    inserted: int
    skipped_duplicates: int
    orphans_skipped: int
    batches: int
    status: ChecklistStatus

    @property
    def persisted(self) -> int:
        """Records that exist for this checklist's pairs after the run."""
        return self.inserted + self.skipped_duplicates


def count_expected_records(items: Sequence[ChecklistItem], hierarchy: LocationHierarchy) -> int:
    """Sum over items of the number of locations at each item's scope."""
    return sum(hierarchy.count(item.scope) for item in items)


def precondition_error(
    checklist: Checklist,
    items: Sequence[ChecklistItem],
    hierarchy: LocationHierarchy,
) -> ActivationPreconditionError | None:
    if not items:
        return EmptyChecklist(checklist.id)
    scopes = {item.scope for item in items}
    if ItemScope.UNIT in scopes and not hierarchy.units:
        return NoUnitsDefined(checklist.project_id)
    if ItemScope.ROOM in scopes and not hierarchy.rooms:
        return NoRoomsDefined(checklist.project_id)
    return None


def expand_records(
    checklist_id: UUID,
    items: Sequence[ChecklistItem],
    hierarchy: LocationHierarchy,
) -> tuple[list[VerificationRecord], int]:
    """Build pending record skeletons for every (item, location) pair.

    Returns the skeletons and the number of orphaned locations left out.
    """
    resolved = {scope: hierarchy.resolve(scope) for scope in {item.scope for item in items}}

    records: list[VerificationRecord] = []
    orphans = 0
    for item in items:
        locations, skipped = resolved[item.scope]
        orphans += skipped
        records.extend(
            VerificationRecord.skeleton(checklist_id, item.id, location)
            for location in locations
        )
    return records, orphans


class ActivationEngine:
    """Materializes verification records for a checklist."""

    def __init__(self, store: PersistenceService, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = store
        self.batch_size = batch_size
        self.checklists = ChecklistStore(store)

    async def preview(self, checklist_id: UUID) -> ActivationPlan:
        """Load the checklist and expand it without checking or writing anything."""
        checklist = await self.checklists.get_checklist(checklist_id)
        items = await self.checklists.list_items(checklist_id)
        hierarchy = await load_hierarchy(self.store, checklist.project_id)
        records, orphans = expand_records(checklist.id, items, hierarchy)
        return ActivationPlan(
            checklist=checklist,
            items=items,
            hierarchy=hierarchy,
            records=records,
            orphans_skipped=orphans,
        )

    async def activate(self, checklist_id: UUID) -> ActivationResult:
        """Write the checklist's verification records and mark it active.

        Raises:
            ChecklistNotFound: If the checklist does not exist
            EmptyChecklist, NoUnitsDefined, NoRoomsDefined: Before any write
            ActivationFailed: If a non-duplicate write error stops the run;
                the checklist status is left unchanged
        """
        plan = await self.preview(checklist_id)
        log = logger.bind(checklist_id=str(checklist_id))

        error = plan.blocking_error
        if error is not None:
            log.info("activation_rejected", reason=str(error))
            raise error

        expected = plan.expected
        log.info(
            "activation_started",
            expected=expected,
            items=len(plan.items),
            orphans_skipped=plan.orphans_skipped,
        )

        rows: list[Row] = [record.to_row() for record in plan.records]
        inserted = 0
        skipped = 0
        batches = 0

        for start in range(0, len(rows), self.batch_size):
            batch = rows[start:start + self.batch_size]
            batches += 1
            try:
                stored = await self.store.insert(Table.VERIFICATION_RECORDS, batch)
                inserted += len(stored)
                continue
            except DuplicateKeyError:
                log.debug("activation_batch_has_duplicates", batch=batches, size=len(batch))
            except PersistenceError as e:
                log.error("activation_failed", batch=batches, inserted=inserted, error=str(e))
                raise ActivationFailed(checklist_id, inserted, skipped, str(e)) from e

            # Replay the conflicting batch row by row so fresh pairs still land
            for row in batch:
                try:
                    await self.store.insert(Table.VERIFICATION_RECORDS, [row])
                    inserted += 1
                except DuplicateKeyError:
                    skipped += 1
                except PersistenceError as e:
                    log.error("activation_failed", batch=batches, inserted=inserted, error=str(e))
                    raise ActivationFailed(checklist_id, inserted, skipped, str(e)) from e

        status = plan.checklist.status
        if status is ChecklistStatus.DRAFT:
            updated = await self.checklists.set_status(checklist_id, ChecklistStatus.ACTIVE)
            status = updated.status

        result = ActivationResult(
            checklist_id=checklist_id,
            expected=expected,
            inserted=inserted,
            skipped_duplicates=skipped,
            orphans_skipped=plan.orphans_skipped,
            batches=batches,
            status=status,
        )
        log.info(
            "activation_complete",
            inserted=inserted,
            skipped_duplicates=skipped,
            batches=batches,
            status=status.value,
        )
        return result
