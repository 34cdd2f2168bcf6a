"""Progress figures derived from verification records."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from sitecheck.execution.index import RecordIndex
from sitecheck.models import ChecklistItem, LocationRef, VerificationRecord, VerificationStatus


def completion_percent(done: int, total: int) -> int:
    """Share of ``done`` in ``total`` rounded half up; 0 when there is nothing to do."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


def overall_percent(records: Iterable[VerificationRecord]) -> int:
    total = 0
    done = 0
    for record in records:
        total += 1
        if record.is_done:
            done += 1
    return completion_percent(done, total)


@dataclass(slots=True)
class LocationProgress:
    done: int
    total: int
    non_conforming: int

    @property
    def percent(self) -> int:
        return completion_percent(self.done, self.total)

    @property
    def has_non_conforming(self) -> bool:
        return self.non_conforming > 0


def location_progress(
    index: RecordIndex,
    items: Sequence[ChecklistItem],
    location: LocationRef,
) -> LocationProgress | None:
    """Progress of the items verified exactly at ``location``.

    Only items whose scope equals the location's level count; an item without a
    record counts as not done. Returns None when no item has that scope.
    """
    scoped = [item for item in items if item.scope == location.scope]
    if not scoped:
        return None

    done = 0
    non_conforming = 0
    for item in scoped:
        record = index.get(item.id, location)
        if record is None:
            continue
        if record.is_done:
            done += 1
        if record.status is VerificationStatus.NOT_OK:
            non_conforming += 1

    return LocationProgress(done=done, total=len(scoped), non_conforming=non_conforming)
