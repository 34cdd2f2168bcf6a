"""Unit tests for SiteCheck Pydantic models."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from sitecheck.models import (
    Checklist,
    ChecklistItem,
    ItemScope,
    LocationRef,
    VerificationRecord,
    VerificationStatus,
    location_key,
)


class TestLocationRef:
    def test_scope_follows_deepest_id(self):
        floor_id, unit_id, room_id = uuid4(), uuid4(), uuid4()

        assert LocationRef(floor_id=floor_id).scope is ItemScope.FLOOR
        assert LocationRef(floor_id=floor_id, unit_id=unit_id).scope is ItemScope.UNIT
        room = LocationRef(floor_id=floor_id, unit_id=unit_id, room_id=room_id)
        assert room.scope is ItemScope.ROOM
        assert room.location_id == room_id
        assert room.key == f"room:{room_id}"

    def test_room_requires_unit(self):
        with pytest.raises(ValidationError, match="room_id requires unit_id"):
            LocationRef(floor_id=uuid4(), room_id=uuid4())

    def test_narrowed_to_drops_deeper_ids(self):
        floor_id, unit_id = uuid4(), uuid4()
        room = LocationRef(floor_id=floor_id, unit_id=unit_id, room_id=uuid4())

        assert room.narrowed_to(ItemScope.UNIT) == LocationRef(floor_id=floor_id, unit_id=unit_id)
        assert room.narrowed_to(ItemScope.FLOOR) == LocationRef(floor_id=floor_id)
        assert room.narrowed_to(ItemScope.ROOM) is room

    def test_hashable(self):
        floor_id = uuid4()
        assert len({LocationRef(floor_id=floor_id), LocationRef(floor_id=floor_id)}) == 1


def test_location_key_prefix_separates_levels():
    shared = uuid4()

    assert location_key(ItemScope.FLOOR, shared) != location_key(ItemScope.UNIT, shared)
    assert location_key("unit", shared) == f"unit:{shared}"


class TestChecklist:
    def test_name_is_stripped(self):
        checklist = Checklist(project_id="p", name="  Waterproofing  ")

        assert checklist.name == "Waterproofing"
        assert checklist.status.value == "draft"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Checklist(project_id="p", name="   ")

    def test_item_defaults_to_unit_scope(self):
        item = ChecklistItem(checklist_id=uuid4(), name="Door frame plumb")

        assert item.scope is ItemScope.UNIT


class TestVerificationRecord:
    def test_skeleton_carries_location(self):
        floor_id, unit_id = uuid4(), uuid4()
        location = LocationRef(floor_id=floor_id, unit_id=unit_id)

        record = VerificationRecord.skeleton(uuid4(), uuid4(), location)

        assert record.status is VerificationStatus.PENDING
        assert record.location_key == f"unit:{unit_id}"
        assert record.location == location
        assert record.scope is ItemScope.UNIT
        assert not record.is_done

    def test_skeleton_values_override_defaults(self):
        record = VerificationRecord.skeleton(
            uuid4(), uuid4(), LocationRef(floor_id=uuid4()), status="ok", note="fine"
        )

        assert record.status is VerificationStatus.OK
        assert record.note == "fine"
        assert record.is_done

    def test_to_row_uses_plain_values(self):
        record = VerificationRecord.skeleton(
            uuid4(), uuid4(), LocationRef(floor_id=uuid4()), status=VerificationStatus.NOT_OK
        )

        row = record.to_row()

        assert row["status"] == "not_ok"
        assert row["location_key"] == record.location_key
        assert row["unit_id"] is None

    @pytest.mark.parametrize(
        "status,done",
        [
            (VerificationStatus.PENDING, False),
            (VerificationStatus.OK, True),
            (VerificationStatus.NOT_OK, True),
            (VerificationStatus.NOT_APPLICABLE, True),
        ],
    )
    def test_done_statuses(self, status, done):
        assert status.is_done is done
