"""Data models for backup/restore operations."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ..base import Document

BackupPayload = Dict[str, List[Document]]


class SnapshotState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    FETCHING = "fetching"
    SERIALIZING = "serializing"
    ENCRYPTING = "encrypting"
    ARCHIVING = "archiving"
    UPLOADING = "uploading"
    CATALOGED = "cataloged"
    DONE = "done"
    FAILED = "failed"


class RestoreState(str, Enum):
    IDLE = "idle"
    LOADED = "loaded"
    PARSED = "parsed"
    VALIDATED = "validated"
    CONFLICT_CHECKED = "conflict_checked"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


class RestoreMode(str, Enum):
    FULL = "full"
    MERGE = "merge"


class CollectionDescriptor(BaseModel):
    name: str
    label: str
    description: str = ""


class BackupOptions(BaseModel):
    """Options for a single snapshot build."""

    encrypt: bool = False
    password: Optional[str] = Field(default=None, repr=False)
    create_archive: bool = True
    include_tabular: bool = True
    upload_to_storage: bool = False
    skip_failed_collections: bool = False
    backup_id: Optional[str] = None

    @model_validator(mode="after")
    def _password_required_for_encryption(self):
        if self.encrypt and not (self.password and self.password.strip()):
            raise ValueError("Password is required for encryption")
        return self


class BackupManifest(BaseModel):
    """Backup manifest: describes one snapshot without its document data."""

    backup_id: str = Field(..., min_length=1, description="Unique backup identifier")
    created_at: datetime = Field(..., description="Backup creation timestamp")
    format_version: int = Field(default=1, description="Payload file format version")
    storekeeper_version: str = Field(default="unknown")
    collections: List[str] = Field(..., description="Collections included in the payload")
    counts: Dict[str, int] = Field(..., description="Document count per collection")
    total_documents: int = Field(..., ge=0)
    checksum: str = Field(..., description="SHA-256 checksum of the canonical payload")
    encrypted: bool = False
    compression: Literal["zip", "none"] = "none"
    file_sizes: Dict[str, Optional[int]] = Field(default_factory=dict)
    storage_urls: Dict[str, str] = Field(default_factory=dict)
    failed_collections: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _consistent_counts(self):
        if set(self.collections) != set(self.counts):
            raise ValueError("collections and counts must name the same collections")
        if any(count < 0 for count in self.counts.values()):
            raise ValueError("document counts must not be negative")
        if sum(self.counts.values()) != self.total_documents:
            raise ValueError(
                f"total_documents ({self.total_documents}) does not match the per-collection counts"
            )
        if not self.checksum.startswith("sha256:"):
            raise ValueError("checksum must carry the 'sha256:' prefix")
        return self


class CollectionFailure(BaseModel):
    """A collection that could not be fully processed."""

    collection: str
    operation: str
    error: str
    documents_processed: int = 0


class CollectionConflict(BaseModel):
    collection: str
    count: int
    sample_ids: List[str]


class RestoreConflictReport(BaseModel):
    conflicts: List[CollectionConflict] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return any(conflict.count > 0 for conflict in self.conflicts)

    @property
    def total(self) -> int:
        return sum(conflict.count for conflict in self.conflicts)

    def for_collection(self, collection: str) -> Optional[CollectionConflict]:
        for conflict in self.conflicts:
            if conflict.collection == collection:
                return conflict
        return None


class RestoreReport(BaseModel):
    backup_id: Optional[str] = None
    mode: RestoreMode
    collections_restored: List[str] = Field(default_factory=list)
    documents_written: Dict[str, int] = Field(default_factory=dict)
    documents_skipped: Dict[str, int] = Field(default_factory=dict)
    total_written: int = 0
    conflicts: Optional[RestoreConflictReport] = None
    integrity_warnings: List[str] = Field(default_factory=list)
    failures: List[CollectionFailure] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return not self.failures and not self.cancelled


class EraseReport(BaseModel):
    total_deleted: int = 0
    deleted_per_collection: Dict[str, int] = Field(default_factory=dict)
    affected_collections: List[str] = Field(default_factory=list)
    unaffected_collections: List[str] = Field(default_factory=list)
    failures: List[CollectionFailure] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return not self.failures and not self.cancelled


@dataclass
class SnapshotArtifacts:
    """In-memory artifacts of one build, ready for download."""

    payload_name: str
    payload: bytes
    manifest_json: bytes
    tables: Dict[str, bytes] = field(default_factory=dict)
    archive_name: Optional[str] = None
    archive: Optional[bytes] = None

    @property
    def primary(self) -> bytes:
        """The artifact a caller should download: the archive when one exists."""
        return self.archive if self.archive is not None else self.payload

    @property
    def primary_name(self) -> str:
        return self.archive_name if self.archive is not None else self.payload_name


@dataclass
class BackupResult:
    manifest: BackupManifest
    artifacts: SnapshotArtifacts


@dataclass
class LoadedSnapshot:
    """A parsed (and decrypted) snapshot artifact."""

    payload: BackupPayload
    manifest: Optional[BackupManifest]
    encrypted: bool
    source: Literal["archive", "payload"]
    raw_metadata: Optional[Dict[str, Any]] = None
    integrity_errors: List[str] = field(default_factory=list)
