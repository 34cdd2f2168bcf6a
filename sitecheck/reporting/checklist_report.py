"""Checklist progress and compliance report.

The report is read-only. Summary counts always cover every record of the
checklist; the optional status filter only narrows the detail grid.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sitecheck.checklists import ChecklistStore
from sitecheck.execution.index import RecordIndex
from sitecheck.execution.progress import completion_percent
from sitecheck.execution.tracker import load_records
from sitecheck.hierarchy import LocationHierarchy, load_hierarchy
from sitecheck.models import (
    Checklist,
    ChecklistItem,
    Floor,
    ItemScope,
    LocationRef,
    Unit,
    VerificationRecord,
    VerificationStatus,
    utcnow,
)
from sitecheck.services.persistence import PersistenceService


@dataclass(slots=True)
class StatusCounts:
    pending: int = 0
    ok: int = 0
    not_ok: int = 0
    not_applicable: int = 0

    @classmethod
    def of(cls, records: Sequence[VerificationRecord]) -> StatusCounts:
        counts = cls()
        for record in records:
            name = record.status.value
            setattr(counts, name, getattr(counts, name) + 1)
        return counts

    @property
    def total(self) -> int:
        return self.pending + self.ok + self.not_ok + self.not_applicable

    @property
    def done(self) -> int:
        return self.ok + self.not_ok + self.not_applicable

    @property
    def percent(self) -> int:
        return completion_percent(self.done, self.total)


@dataclass(slots=True)
class NonConformity:
    item: ChecklistItem
    note: str | None = None
    photo_url: str | None = None


@dataclass(slots=True)
class UnitPendencies:
    """Open work for one unit: failed items and items not yet verified."""

    floor: Floor | None
    unit: Unit
    non_conforming: list[NonConformity] = field(default_factory=list)
    pending: list[ChecklistItem] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.floor.name if self.floor else '?'} / {self.unit.name}"


@dataclass(slots=True)
class DetailRow:
    item: ChecklistItem
    cells: list[VerificationRecord | None]

    @property
    def statuses(self) -> list[VerificationStatus]:
        return [cell.status if cell else VerificationStatus.PENDING for cell in self.cells]

    def matches(self, status: VerificationStatus) -> bool:
        return status in self.statuses


@dataclass(slots=True)
class FloorDetail:
    floor: Floor
    units: list[Unit]
    rows: list[DetailRow]


@dataclass(slots=True)
class ChecklistReport:
    checklist: Checklist
    counts: StatusCounts
    pendencies: list[UnitPendencies]
    detail: list[FloorDetail]
    status_filter: VerificationStatus | None = None
    generated_at: datetime = field(default_factory=utcnow)

    @property
    def overall_percent(self) -> int:
        return self.counts.percent

    @property
    def total(self) -> int:
        return self.counts.total


def aggregate_report(
    checklist: Checklist,
    items: Sequence[ChecklistItem],
    records: Sequence[VerificationRecord],
    hierarchy: LocationHierarchy,
    status_filter: VerificationStatus | None = None,
) -> ChecklistReport:
    """Pure aggregation over already loaded data."""
    if status_filter is not None:
        status_filter = VerificationStatus(status_filter)

    index = RecordIndex(records)
    unit_items = [item for item in items if item.scope is ItemScope.UNIT]

    # Units this checklist actually covers, by floor order then unit order
    covered = {record.unit_id for record in records if record.unit_id is not None}
    units = [
        unit
        for floor in hierarchy.floors
        for unit in hierarchy.units_of(floor.id)
        if unit.id in covered
    ]

    pendencies: list[UnitPendencies] = []
    for unit in units:
        location = LocationRef(floor_id=unit.floor_id, unit_id=unit.id)
        entry = UnitPendencies(floor=hierarchy.floor(unit.floor_id), unit=unit)
        for item in unit_items:
            record = index.get(item.id, location)
            if record is None or record.status is VerificationStatus.PENDING:
                entry.pending.append(item)
            elif record.status is VerificationStatus.NOT_OK:
                entry.non_conforming.append(
                    NonConformity(item=item, note=record.note, photo_url=record.photo_url)
                )
        if entry.non_conforming or entry.pending:
            pendencies.append(entry)

    detail: list[FloorDetail] = []
    for floor in hierarchy.floors:
        floor_units = [unit for unit in units if unit.floor_id == floor.id]
        if not floor_units:
            continue
        rows = []
        for item in unit_items:
            row = DetailRow(
                item=item,
                cells=[
                    index.get(item.id, LocationRef(floor_id=floor.id, unit_id=unit.id))
                    for unit in floor_units
                ],
            )
            if status_filter is None or row.matches(status_filter):
                rows.append(row)
        detail.append(FloorDetail(floor=floor, units=floor_units, rows=rows))

    return ChecklistReport(
        checklist=checklist,
        counts=StatusCounts.of(records),
        pendencies=pendencies,
        detail=detail,
        status_filter=status_filter,
    )


async def build_report(
    store: PersistenceService,
    checklist_id: UUID,
    status_filter: VerificationStatus | None = None,
) -> ChecklistReport:
    """Load a checklist with its records and hierarchy and aggregate the report.

    Raises:
        ChecklistNotFound: If the checklist does not exist
    """
    checklists = ChecklistStore(store)
    checklist = await checklists.get_checklist(checklist_id)
    items = await checklists.list_items(checklist_id)
    records = await load_records(store, checklist_id)
    hierarchy = await load_hierarchy(store, checklist.project_id)
    return aggregate_report(checklist, items, records, hierarchy, status_filter)
