"""Database layer for SiteCheck with async SQLAlchemy."""

from sitecheck.db.connection import close_db, get_engine, get_session_factory, init_db
from sitecheck.db.models import (
    Base,
    ChecklistItemModel,
    ChecklistModel,
    FloorModel,
    RoomModel,
    UnitModel,
    VerificationRecordModel,
)

__all__ = [
    "Base",
    "ChecklistItemModel",
    "ChecklistModel",
    "FloorModel",
    "RoomModel",
    "UnitModel",
    "VerificationRecordModel",
    "close_db",
    "get_engine",
    "get_session_factory",
    "init_db",
]
