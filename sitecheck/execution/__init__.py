"""Checklist activation and execution tracking."""

from sitecheck.execution.activation import (
    ActivationEngine,
    ActivationPlan,
    ActivationResult,
    count_expected_records,
    expand_records,
)
from sitecheck.execution.index import RecordIndex
from sitecheck.execution.progress import (
    LocationProgress,
    completion_percent,
    location_progress,
    overall_percent,
)
from sitecheck.execution.tracker import ExecutionTracker, load_records

__all__ = [
    "ActivationEngine",
    "ActivationPlan",
    "ActivationResult",
    "ExecutionTracker",
    "LocationProgress",
    "RecordIndex",
    "completion_percent",
    "count_expected_records",
    "expand_records",
    "load_records",
    "location_progress",
    "overall_percent",
]
