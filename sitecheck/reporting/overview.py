"""Cross-checklist progress figures for list and dashboard views."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from sitecheck.execution.progress import completion_percent
from sitecheck.models import ChecklistStatus, VerificationStatus
from sitecheck.services.persistence import Filters, PersistenceService, Table


@dataclass(slots=True)
class ChecklistProgress:
    checklist_id: UUID
    total: int = 0
    done: int = 0

    @property
    def percent(self) -> int:
        return completion_percent(self.done, self.total)


@dataclass(slots=True)
class ProjectDashboard:
    """Headline numbers for one project."""

    project_id: str
    checklists: int
    active_checklists: int
    open_non_conformities: int


async def summarize_progress(
    store: PersistenceService,
    checklist_ids: Iterable[UUID] | None = None,
) -> dict[UUID, ChecklistProgress]:
    """Total and done record counts per checklist.

    With ``checklist_ids`` every requested checklist gets an entry, even one
    without records (0%). Without it, every checklist that has records.
    """
    filters: Filters = {}
    summary: dict[UUID, ChecklistProgress] = {}
    if checklist_ids is not None:
        ids = list(dict.fromkeys(checklist_ids))
        if not ids:
            return {}
        filters["checklist_id"] = ids
        summary = {checklist_id: ChecklistProgress(checklist_id) for checklist_id in ids}

    rows = await store.select(Table.VERIFICATION_RECORDS, filters)
    for row in rows:
        checklist_id = row["checklist_id"]
        entry = summary.get(checklist_id)
        if entry is None:
            entry = summary[checklist_id] = ChecklistProgress(checklist_id)
        entry.total += 1
        if VerificationStatus(row["status"]).is_done:
            entry.done += 1
    return summary


async def project_dashboard(store: PersistenceService, project_id: str) -> ProjectDashboard:
    checklist_rows = await store.select(Table.CHECKLISTS, {"project_id": project_id})
    active = sum(
        1 for row in checklist_rows
        if ChecklistStatus(row["status"]) is ChecklistStatus.ACTIVE
    )

    open_nok = 0
    if checklist_rows:
        nok_rows = await store.select(
            Table.VERIFICATION_RECORDS,
            {
                "checklist_id": [row["id"] for row in checklist_rows],
                "status": VerificationStatus.NOT_OK.value,
            },
        )
        open_nok = len(nok_rows)

    return ProjectDashboard(
        project_id=project_id,
        checklists=len(checklist_rows),
        active_checklists=active,
        open_non_conformities=open_nok,
    )
