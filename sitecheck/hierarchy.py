"""Read-only projection of a project's floor -> unit -> room structure."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sitecheck.models import Floor, ItemScope, LocationRef, Room, Unit
from sitecheck.services.persistence import PersistenceService, Table

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LocationHierarchy:
    """Floors, units and rooms of one project, in display order."""

    project_id: str
    floors: list[Floor] = field(default_factory=list)
    units: list[Unit] = field(default_factory=list)
    rooms: list[Room] = field(default_factory=list)

    _floors_by_id: dict[UUID, Floor] = field(init=False, repr=False)
    _units_by_id: dict[UUID, Unit] = field(init=False, repr=False)
    _rooms_by_id: dict[UUID, Room] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._floors_by_id = {floor.id: floor for floor in self.floors}
        self._units_by_id = {unit.id: unit for unit in self.units}
        self._rooms_by_id = {room.id: room for room in self.rooms}

    def floor(self, floor_id: UUID) -> Floor | None:
        return self._floors_by_id.get(floor_id)

    def unit(self, unit_id: UUID) -> Unit | None:
        return self._units_by_id.get(unit_id)

    def room(self, room_id: UUID) -> Room | None:
        return self._rooms_by_id.get(room_id)

    def contains(self, location: LocationRef) -> bool:
        """True when every id of ``location`` is registered and the ids form one chain."""
        if self.floor(location.floor_id) is None:
            return False
        if location.unit_id is not None:
            unit = self.unit(location.unit_id)
            if unit is None or unit.floor_id != location.floor_id:
                return False
        if location.room_id is not None:
            room = self.room(location.room_id)
            if room is None or room.unit_id != location.unit_id:
                return False
        return True

    def units_of(self, floor_id: UUID) -> list[Unit]:
        return [unit for unit in self.units if unit.floor_id == floor_id]

    def rooms_of(self, unit_id: UUID) -> list[Room]:
        return [room for room in self.rooms if room.unit_id == unit_id]

    def count(self, scope: ItemScope) -> int:
        """Number of locations registered at ``scope``, orphans included."""
        scope = ItemScope(scope)
        if scope is ItemScope.FLOOR:
            return len(self.floors)
        if scope is ItemScope.UNIT:
            return len(self.units)
        return len(self.rooms)

    def resolve(self, scope: ItemScope) -> tuple[list[LocationRef], int]:
        """Every location at ``scope`` with its ancestor ids filled in.

        Units whose floor is unknown and rooms whose unit or floor is unknown
        are left out. Returns the references and the number left out.
        """
        scope = ItemScope(scope)
        refs: list[LocationRef] = []
        orphans = 0

        if scope is ItemScope.FLOOR:
            refs = [LocationRef(floor_id=floor.id) for floor in self.floors]
        elif scope is ItemScope.UNIT:
            for unit in self.units:
                if self.floor(unit.floor_id) is None:
                    orphans += 1
                    logger.warning("Unit %s references missing floor %s", unit.id, unit.floor_id)
                    continue
                refs.append(LocationRef(floor_id=unit.floor_id, unit_id=unit.id))
        else:
            for room in self.rooms:
                unit = self.unit(room.unit_id)
                if unit is None or self.floor(unit.floor_id) is None:
                    orphans += 1
                    logger.warning("Room %s has no resolvable unit/floor", room.id)
                    continue
                refs.append(
                    LocationRef(floor_id=unit.floor_id, unit_id=unit.id, room_id=room.id)
                )

        return refs, orphans

    def label(self, location: LocationRef) -> str:
        """Human readable path such as ``"2nd floor / Apt 201 / Kitchen"``."""
        parts = []
        floor = self.floor(location.floor_id)
        parts.append(floor.name if floor else str(location.floor_id))
        if location.unit_id is not None:
            unit = self.unit(location.unit_id)
            parts.append(unit.name if unit else str(location.unit_id))
        if location.room_id is not None:
            room = self.room(location.room_id)
            parts.append(room.name if room else str(location.room_id))
        return " / ".join(parts)


async def load_hierarchy(store: PersistenceService, project_id: str) -> LocationHierarchy:
    """Load floors, then their units, then their rooms."""
    floor_rows = await store.select(
        Table.FLOORS, {"project_id": project_id}, order_by=["order", "name"]
    )
    floors = [Floor.model_validate(row) for row in floor_rows]

    units: list[Unit] = []
    rooms: list[Room] = []
    if floors:
        unit_rows = await store.select(
            Table.UNITS, {"floor_id": [floor.id for floor in floors]}, order_by=["order", "name"]
        )
        units = [Unit.model_validate(row) for row in unit_rows]
    if units:
        room_rows = await store.select(
            Table.ROOMS, {"unit_id": [unit.id for unit in units]}, order_by=["created_at", "name"]
        )
        rooms = [Room.model_validate(row) for row in room_rows]

    logger.debug(
        "Loaded hierarchy for %s: %d floors, %d units, %d rooms",
        project_id, len(floors), len(units), len(rooms),
    )
    return LocationHierarchy(project_id=project_id, floors=floors, units=units, rooms=rooms)
