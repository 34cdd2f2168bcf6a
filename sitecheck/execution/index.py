"""In-memory index of verification records by (item, scoped location)."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from uuid import UUID

from sitecheck.models import LocationRef, VerificationRecord

RecordKey = tuple[UUID, str]


class RecordIndex:
    """Verification records keyed by ``(item_id, location_key)``.

    ``location_key`` carries the scope prefix, so a floor and a unit that happen
    to share an id never collide.
    """

    def __init__(self, records: Iterable[VerificationRecord] = ()):
        self._records: dict[RecordKey, VerificationRecord] = {}
        for record in records:
            self.put(record)

    @staticmethod
    def key_for(item_id: UUID, location: LocationRef) -> RecordKey:
        return (item_id, location.key)

    def get(self, item_id: UUID, location: LocationRef) -> VerificationRecord | None:
        return self._records.get(self.key_for(item_id, location))

    def put(self, record: VerificationRecord) -> None:
        self._records[(record.item_id, record.location_key)] = record

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[VerificationRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)
