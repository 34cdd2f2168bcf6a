"""Checklist reports, progress overviews and exports."""

from sitecheck.reporting.checklist_report import (
    ChecklistReport,
    DetailRow,
    FloorDetail,
    NonConformity,
    StatusCounts,
    UnitPendencies,
    aggregate_report,
    build_report,
)
from sitecheck.reporting.excel_export import export_report_excel
from sitecheck.reporting.overview import (
    ChecklistProgress,
    ProjectDashboard,
    project_dashboard,
    summarize_progress,
)

__all__ = [
    "ChecklistProgress",
    "ChecklistReport",
    "DetailRow",
    "FloorDetail",
    "NonConformity",
    "ProjectDashboard",
    "StatusCounts",
    "UnitPendencies",
    "aggregate_report",
    "build_report",
    "export_report_excel",
    "project_dashboard",
    "summarize_progress",
]
