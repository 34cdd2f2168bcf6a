"""Tests for checklist definition CRUD."""

from __future__ import annotations

from uuid import uuid4

import pytest

from sitecheck.errors import ChecklistNotFound, ItemInUse, ItemNotFound
from sitecheck.execution import ActivationEngine, load_records
from sitecheck.models import ChecklistStatus, ItemScope


@pytest.mark.asyncio
async def test_create_and_get_checklist(checklists, test_project_id):
    created = await checklists.create_checklist(
        test_project_id, "  Final finishes ", description="  ", created_by="eng-1"
    )

    fetched = await checklists.get_checklist(created.id)

    assert fetched.name == "Final finishes"
    assert fetched.description is None
    assert fetched.status is ChecklistStatus.DRAFT
    assert fetched.created_by == "eng-1"


@pytest.mark.asyncio
async def test_get_unknown_checklist(checklists):
    with pytest.raises(ChecklistNotFound):
        await checklists.get_checklist(uuid4())


@pytest.mark.asyncio
async def test_list_checklists_filters_by_project(checklists):
    await checklists.create_checklist("a", "First")
    await checklists.create_checklist("a", "Second")
    await checklists.create_checklist("b", "Other")

    in_a = await checklists.list_checklists("a")

    assert {c.name for c in in_a} == {"First", "Second"}
    assert len(await checklists.list_checklists()) == 3


@pytest.mark.asyncio
async def test_add_item_appends_in_order(checklists, test_project_id):
    checklist = await checklists.create_checklist(test_project_id, "Structure")

    first = await checklists.add_item(checklist.id, "Slab level", scope=ItemScope.FLOOR)
    second = await checklists.add_item(checklist.id, "Door frame")
    third = await checklists.add_item(checklist.id, "Socket height", scope="room")

    items = await checklists.list_items(checklist.id)

    assert [item.id for item in items] == [first.id, second.id, third.id]
    assert [item.order for item in items] == [0, 1, 2]
    assert [item.scope for item in items] == [ItemScope.FLOOR, ItemScope.UNIT, ItemScope.ROOM]


@pytest.mark.asyncio
async def test_add_item_to_unknown_checklist(checklists):
    with pytest.raises(ChecklistNotFound):
        await checklists.add_item(uuid4(), "Orphan item")


@pytest.mark.asyncio
async def test_remove_item(checklists, test_project_id):
    checklist = await checklists.create_checklist(test_project_id, "Structure")
    item = await checklists.add_item(checklist.id, "Door frame")

    await checklists.remove_item(item.id)

    assert await checklists.list_items(checklist.id) == []
    with pytest.raises(ItemNotFound):
        await checklists.remove_item(item.id)


@pytest.mark.asyncio
async def test_remove_item_with_records_is_refused(store, checklists, seed_project):
    seeded = await seed_project(floors=1, units_per_floor=2)
    checklist = await checklists.create_checklist(seeded.project_id, "Structure")
    item = await checklists.add_item(checklist.id, "Door frame")
    await ActivationEngine(store).activate(checklist.id)

    with pytest.raises(ItemInUse):
        await checklists.remove_item(item.id)

    assert [i.id for i in await checklists.list_items(checklist.id)] == [item.id]
    assert len(await load_records(store, checklist.id)) == 2


@pytest.mark.asyncio
async def test_set_status(checklists, test_project_id):
    checklist = await checklists.create_checklist(test_project_id, "Structure")

    updated = await checklists.set_status(checklist.id, ChecklistStatus.COMPLETED)

    assert updated.status is ChecklistStatus.COMPLETED
