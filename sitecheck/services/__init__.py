"""Collaborator contracts (persistence, photo storage, identity) and adapters."""

from sitecheck.services.identity import IdentityService, StaticIdentity
from sitecheck.services.persistence import PersistenceService, Row, Table
from sitecheck.services.sqlalchemy_store import SQLAlchemyPersistence
from sitecheck.services.storage import (
    BlobStorage,
    HttpBlobStorage,
    LocalBlobStorage,
    build_storage,
)

__all__ = [
    "BlobStorage",
    "HttpBlobStorage",
    "IdentityService",
    "LocalBlobStorage",
    "PersistenceService",
    "Row",
    "SQLAlchemyPersistence",
    "StaticIdentity",
    "Table",
    "build_storage",
]
