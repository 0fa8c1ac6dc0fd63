"""Backup and restore of document store collections."""

from .catalog import BackupCatalog
from .collections import DEFAULT_COLLECTIONS, collection_names
from .eraser import BulkEraser
from .manager import BackupManager
from .models import (
    BackupManifest,
    BackupOptions,
    BackupResult,
    CollectionDescriptor,
    CollectionFailure,
    EraseReport,
    RestoreConflictReport,
    RestoreMode,
    RestoreReport,
)
from .restore import RestoreEngine
from .stats import CollectionStatsScanner

__all__ = [
    "BackupCatalog",
    "BackupManager",
    "BackupManifest",
    "BackupOptions",
    "BackupResult",
    "BulkEraser",
    "CollectionDescriptor",
    "CollectionFailure",
    "CollectionStatsScanner",
    "DEFAULT_COLLECTIONS",
    "EraseReport",
    "RestoreConflictReport",
    "RestoreEngine",
    "RestoreMode",
    "RestoreReport",
    "collection_names",
]
