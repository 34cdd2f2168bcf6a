"""SiteCheck Pydantic models for type-safe data validation.

Rows cross the persistence boundary as plain mappings; these models validate
them on the way in and produce insert payloads on the way out.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_value(value):
    return value.value if isinstance(value, Enum) else value


class ItemScope(str, Enum):
    """Hierarchy level at which a checklist item is verified."""

    FLOOR = "floor"
    UNIT = "unit"
    ROOM = "room"


class ChecklistStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"  # Set by surrounding workflow, never by the engine


class VerificationStatus(str, Enum):
    PENDING = "pending"
    OK = "ok"
    NOT_OK = "not_ok"
    NOT_APPLICABLE = "not_applicable"

    @property
    def is_done(self) -> bool:
        return self is not VerificationStatus.PENDING


def location_key(scope: ItemScope, location_id: UUID) -> str:
    """Scope-prefixed location id, unique across hierarchy levels."""
    return f"{ItemScope(scope).value}:{location_id}"


# ---- Location hierarchy ----


class Floor(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    project_id: str
    name: str
    order: int = 0


class Unit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    floor_id: UUID
    name: str
    order: int = 0


class Room(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    unit_id: UUID
    name: str


# ---- Checklists ----


class Checklist(BaseModel):
    """Checklist definition header."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    project_id: str
    name: str
    description: str | None = None
    status: ChecklistStatus = ChecklistStatus.DRAFT
    created_at: datetime = Field(default_factory=utcnow)
    created_by: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("checklist name must not be empty")
        return v


class ChecklistItem(BaseModel):
    """A single verification point, checked once per location at its scope."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    checklist_id: UUID
    name: str
    order: int = 0
    scope: ItemScope = ItemScope.UNIT

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("item name must not be empty")
        return v


class LocationRef(BaseModel):
    """Pointer to a floor, unit or room, carrying every ancestor id.

    The deepest id that is set decides the level:
    ``LocationRef(floor_id=f, unit_id=u)`` points at unit ``u`` on floor ``f``.
    """

    model_config = ConfigDict(frozen=True)

    floor_id: UUID
    unit_id: UUID | None = None
    room_id: UUID | None = None

    @model_validator(mode="after")
    def check_chain(self) -> LocationRef:
        if self.room_id is not None and self.unit_id is None:
            raise ValueError("room_id requires unit_id")
        return self

    @property
    def scope(self) -> ItemScope:
        if self.room_id is not None:
            return ItemScope.ROOM
        if self.unit_id is not None:
            return ItemScope.UNIT
        return ItemScope.FLOOR

    @property
    def location_id(self) -> UUID:
        return self.room_id or self.unit_id or self.floor_id

    @property
    def key(self) -> str:
        return location_key(self.scope, self.location_id)

    def narrowed_to(self, scope: ItemScope) -> LocationRef:
        """Drop the ids below ``scope``.

        A room reference narrowed to ``unit`` points at the room's unit.
        """
        scope = ItemScope(scope)
        if scope is ItemScope.FLOOR:
            return LocationRef(floor_id=self.floor_id)
        if scope is ItemScope.UNIT:
            return LocationRef(floor_id=self.floor_id, unit_id=self.unit_id)
        return self


class VerificationRecord(BaseModel):
    """Tracked state of one item at one location."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    checklist_id: UUID
    item_id: UUID
    floor_id: UUID
    unit_id: UUID | None = None
    room_id: UUID | None = None
    location_key: str
    status: VerificationStatus = VerificationStatus.PENDING
    note: str | None = None
    photo_url: str | None = None
    verified_at: datetime | None = None
    verified_by: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def location(self) -> LocationRef:
        return LocationRef(floor_id=self.floor_id, unit_id=self.unit_id, room_id=self.room_id)

    @property
    def scope(self) -> ItemScope:
        return self.location.scope

    @property
    def is_done(self) -> bool:
        return self.status.is_done

    @classmethod
    def skeleton(
        cls,
        checklist_id: UUID,
        item_id: UUID,
        location: LocationRef,
        **values: Any,
    ) -> VerificationRecord:
        """Build a new record for ``location``; ``values`` override defaults."""
        return cls(
            checklist_id=checklist_id,
            item_id=item_id,
            floor_id=location.floor_id,
            unit_id=location.unit_id,
            room_id=location.room_id,
            location_key=location.key,
            **values,
        )

    def to_row(self) -> dict[str, Any]:
        return {key: enum_value(value) for key, value in self.model_dump().items()}
