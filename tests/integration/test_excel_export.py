"""Integration test for the Excel report export."""

from __future__ import annotations

import pytest
from openpyxl import load_workbook

from sitecheck.execution import ActivationEngine, ExecutionTracker
from sitecheck.models import ItemScope, LocationRef, VerificationStatus
from sitecheck.reporting import build_report, export_report_excel
from sitecheck.services.identity import StaticIdentity


@pytest.mark.asyncio
async def test_export_report_excel(store, checklists, seed_project):
    seeded = await seed_project(floors=2, units_per_floor=2)
    checklist = await checklists.create_checklist(seeded.project_id, "Final inspection")
    paint = await checklists.add_item(checklist.id, "Wall paint")
    doors = await checklists.add_item(checklist.id, "Door alignment")
    await ActivationEngine(store).activate(checklist.id)

    tracker = await ExecutionTracker.open(store, checklist.id, StaticIdentity("qa"))
    first_unit = seeded.units_of(seeded.floors[0])[0]
    location = LocationRef(floor_id=first_unit.floor_id, unit_id=first_unit.id)
    await tracker.set_status(paint.id, location, VerificationStatus.NOT_OK)
    await tracker.set_note(paint.id, location, "Drip marks")
    await tracker.attach_photo(paint.id, location, "https://cdn.example.com/p.jpg")
    await tracker.set_status(doors.id, location, VerificationStatus.OK)

    report = await build_report(store, checklist.id)
    output = export_report_excel(report)

    wb = load_workbook(output)
    assert wb.sheetnames == ["Summary", "Pendencies", "Floor 1", "Floor 2"]

    summary = wb["Summary"]
    assert summary["A1"].value == "Checklist Report: Final inspection"
    values = {
        summary.cell(row=r, column=1).value: summary.cell(row=r, column=2).value
        for r in range(8, 14)
    }
    assert values["OK"] == 1
    assert values["Not OK"] == 1
    assert values["Pending"] == 6
    assert values["Total"] == 8
    assert values["Completion"] == "25%"

    pendencies = wb["Pendencies"]
    rows = [
        [cell.value for cell in row]
        for row in pendencies.iter_rows(min_row=4, max_col=5)
    ]
    assert rows[0] == ["Floor 1 / Unit 101", "Wall paint", "Not OK", "Drip marks",
                       "https://cdn.example.com/p.jpg"]
    # Three remaining units with both items pending
    assert sum(1 for row in rows if row[2] == "Pending") == 6

    floor1 = wb["Floor 1"]
    assert [c.value for c in floor1[3]] == ["Item", "Unit 101", "Unit 102"]
    assert [c.value for c in floor1[4]] == ["Wall paint", "Not OK", "Pending"]
    assert [c.value for c in floor1[5]] == ["Door alignment", "OK", "Pending"]


@pytest.mark.asyncio
async def test_export_empty_report(store, checklists, seed_project):
    seeded = await seed_project(floors=1)
    checklist = await checklists.create_checklist(seeded.project_id, "Floors only")
    await checklists.add_item(checklist.id, "Slab cleaned", scope=ItemScope.FLOOR)

    report = await build_report(store, checklist.id)
    wb = load_workbook(export_report_excel(report))

    assert wb.sheetnames == ["Summary", "Pendencies"]
    assert wb["Pendencies"]["A4"].value == "No pendencies"
