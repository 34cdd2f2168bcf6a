"""Exception hierarchy for SiteCheck.

Precondition errors are raised before any write and are safe to retry once the
project data has been fixed. Persistence and storage errors come from the
collaborator adapters and carry the underlying driver exception as ``__cause__``.
"""

from __future__ import annotations

from uuid import UUID


class SiteCheckError(Exception):
    """Base class for all SiteCheck errors."""


class ChecklistNotFound(SiteCheckError):
    def __init__(self, checklist_id: UUID):
        super().__init__(f"Checklist not found: {checklist_id}")
        self.checklist_id = checklist_id


class ItemNotFound(SiteCheckError):
    def __init__(self, item_id: UUID):
        super().__init__(f"Checklist item not found: {item_id}")
        self.item_id = item_id


class ItemInUse(SiteCheckError):
    """Raised when removing an item that already has verification records."""

    def __init__(self, item_id: UUID, records: int):
        super().__init__(f"Checklist item {item_id} has {records} verification records and cannot be removed")
        self.item_id = item_id
        self.records = records


class ScopeMismatch(SiteCheckError):
    """Raised when a location reference does not fit the item's scope."""


class LocationNotFound(SiteCheckError):
    """Raised when a location does not belong to the project's floor, unit and room structure."""

    def __init__(self, location_key: str, project_id: str):
        super().__init__(f"Location {location_key} is not registered in project {project_id}")
        self.location_key = location_key
        self.project_id = project_id


class ActivationPreconditionError(SiteCheckError):
    """Raised when a checklist cannot be activated yet.

    The checklist status is left untouched and nothing has been written.
    """


class EmptyChecklist(ActivationPreconditionError):
    def __init__(self, checklist_id: UUID):
        super().__init__(
            f"Checklist {checklist_id} has no items. Add at least one item before activating."
        )
        self.checklist_id = checklist_id


class NoUnitsDefined(ActivationPreconditionError):
    def __init__(self, project_id: str):
        super().__init__(
            f"Project {project_id} has no units but the checklist has unit-scoped items. "
            "Register the units before activating."
        )
        self.project_id = project_id


class NoRoomsDefined(ActivationPreconditionError):
    def __init__(self, project_id: str):
        super().__init__(
            f"Project {project_id} has no rooms but the checklist has room-scoped items. "
            "Register the rooms before activating."
        )
        self.project_id = project_id


class ActivationFailed(SiteCheckError):
    """Raised when a non-duplicate write error stops activation.

    Rows written by earlier batches stay in place; retrying the activation
    picks up where this attempt stopped.
    """

    def __init__(self, checklist_id: UUID, inserted: int, skipped_duplicates: int, reason: str):
        super().__init__(
            f"Activation of checklist {checklist_id} failed after {inserted} records "
            f"were written: {reason}. The checklist status is unchanged; retry the activation."
        )
        self.checklist_id = checklist_id
        self.inserted = inserted
        self.skipped_duplicates = skipped_duplicates
        self.reason = reason


class PersistenceError(SiteCheckError):
    """Any write or read failure reported by the persistence service."""

    def __init__(self, message: str, table: str | None = None):
        super().__init__(message)
        self.table = table


class DuplicateKeyError(PersistenceError):
    """A row with the same unique key already exists."""


class StorageError(SiteCheckError):
    """Photo upload or URL resolution failed."""
