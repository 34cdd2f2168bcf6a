"""Excel export for checklist reports.

Generates a workbook with:
- Summary sheet (counts and completion)
- Pendencies per unit
- One detail grid per floor
"""
from __future__ import annotations

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from sitecheck.models import VerificationStatus
from sitecheck.reporting.checklist_report import ChecklistReport, FloorDetail

STATUS_LABELS = {
    VerificationStatus.PENDING: "Pending",
    VerificationStatus.OK: "OK",
    VerificationStatus.NOT_OK: "Not OK",
    VerificationStatus.NOT_APPLICABLE: "N/A",
}

STATUS_FILLS = {
    VerificationStatus.OK: PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid"),
    VerificationStatus.NOT_OK: PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid"),
    VerificationStatus.NOT_APPLICABLE: PatternFill(start_color="D9D9D9", end_color="D9D9D9", fill_type="solid"),
}

HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)

# Excel forbids these in sheet titles and caps them at 31 characters
_INVALID_TITLE_CHARS = set('[]:*?/\\')


def export_report_excel(report: ChecklistReport) -> BytesIO:
    """Render a checklist report as an Excel workbook.

    Args:
        report: Aggregated checklist report

    Returns:
        BytesIO containing the workbook, positioned at the start
    """
    wb = Workbook()
    if 'Sheet' in wb.sheetnames:
        wb.remove(wb['Sheet'])

    _create_summary_sheet(wb, report)
    _create_pendencies_sheet(wb, report)
    used_titles = set(wb.sheetnames)
    for floor_detail in report.detail:
        _create_floor_sheet(wb, floor_detail, used_titles)

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def _write_headers(ws, row: int, headers: list[str]) -> None:
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT


def _create_summary_sheet(wb: Workbook, report: ChecklistReport) -> None:
    ws = wb.create_sheet("Summary", 0)

    ws['A1'] = f"Checklist Report: {report.checklist.name}"
    ws['A1'].font = Font(bold=True, size=16)
    ws.merge_cells('A1:C1')

    ws['A3'] = "Project:"
    ws['B3'] = report.checklist.project_id
    ws['A4'] = "Status:"
    ws['B4'] = report.checklist.status.value
    ws['A5'] = "Generated:"
    ws['B5'] = report.generated_at.strftime("%Y-%m-%d %H:%M")

    row = 7
    _write_headers(ws, row, ["Status", "Records"])
    counts = report.counts
    data = [
        (STATUS_LABELS[VerificationStatus.OK], counts.ok),
        (STATUS_LABELS[VerificationStatus.NOT_OK], counts.not_ok),
        (STATUS_LABELS[VerificationStatus.NOT_APPLICABLE], counts.not_applicable),
        (STATUS_LABELS[VerificationStatus.PENDING], counts.pending),
        ("Total", counts.total),
        ("Completion", f"{report.overall_percent}%"),
    ]
    for label, value in data:
        row += 1
        ws.cell(row=row, column=1, value=label)
        ws.cell(row=row, column=2, value=value)
    ws.cell(row=row, column=1).font = Font(bold=True)

    ws.column_dimensions['A'].width = 20
    ws.column_dimensions['B'].width = 40


def _create_pendencies_sheet(wb: Workbook, report: ChecklistReport) -> None:
    ws = wb.create_sheet("Pendencies")

    ws['A1'] = "Open Items per Unit"
    ws['A1'].font = Font(bold=True, size=14)

    row = 3
    _write_headers(ws, row, ["Location", "Item", "Status", "Note", "Photo"])

    if not report.pendencies:
        row += 1
        ws.cell(row=row, column=1, value="No pendencies")
        ws.merge_cells(f'A{row}:E{row}')

    for entry in report.pendencies:
        for nok in entry.non_conforming:
            row += 1
            ws.cell(row=row, column=1, value=entry.label)
            ws.cell(row=row, column=2, value=nok.item.name)
            status = ws.cell(row=row, column=3, value=STATUS_LABELS[VerificationStatus.NOT_OK])
            status.fill = STATUS_FILLS[VerificationStatus.NOT_OK]
            ws.cell(row=row, column=4, value=nok.note)
            if nok.photo_url:
                photo = ws.cell(row=row, column=5, value=nok.photo_url)
                photo.hyperlink = nok.photo_url
        for item in entry.pending:
            row += 1
            ws.cell(row=row, column=1, value=entry.label)
            ws.cell(row=row, column=2, value=item.name)
            ws.cell(row=row, column=3, value=STATUS_LABELS[VerificationStatus.PENDING])

    ws.column_dimensions['A'].width = 30
    ws.column_dimensions['B'].width = 40
    ws.column_dimensions['C'].width = 12
    ws.column_dimensions['D'].width = 40
    ws.column_dimensions['E'].width = 50


def _sheet_title(name: str, used: set[str]) -> str:
    base = "".join("_" if ch in _INVALID_TITLE_CHARS else ch for ch in name).strip() or "Floor"
    base = base[:31]
    title = base
    n = 2
    while title in used:
        suffix = f" ({n})"
        title = base[:31 - len(suffix)] + suffix
        n += 1
    used.add(title)
    return title


def _create_floor_sheet(wb: Workbook, detail: FloorDetail, used_titles: set[str]) -> None:
    ws = wb.create_sheet(_sheet_title(detail.floor.name, used_titles))

    ws['A1'] = detail.floor.name
    ws['A1'].font = Font(bold=True, size=14)

    row = 3
    _write_headers(ws, row, ["Item"] + [unit.name for unit in detail.units])

    for detail_row in detail.rows:
        row += 1
        ws.cell(row=row, column=1, value=detail_row.item.name)
        for col, status in enumerate(detail_row.statuses, 2):
            cell = ws.cell(row=row, column=col, value=STATUS_LABELS[status])
            cell.alignment = Alignment(horizontal="center")
            fill = STATUS_FILLS.get(status)
            if fill is not None:
                cell.fill = fill

    ws.column_dimensions['A'].width = 40
    for col in range(2, len(detail.units) + 2):
        ws.column_dimensions[get_column_letter(col)].width = 14
    ws.freeze_panes = "B4"
