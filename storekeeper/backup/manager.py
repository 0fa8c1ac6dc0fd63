"""Snapshot building: fetch, serialize, encrypt, archive, upload, catalog."""

import inspect
import json
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from .._utils import logger
from ..base import BaseBlobStorage, BaseDocumentStore
from ..config import BackupConfig
from .catalog import BackupCatalog
from .crypto import encrypt_payload
from .exporters import CollectionExporter, TabularExporter
from .models import (
    BackupManifest,
    BackupOptions,
    BackupResult,
    SnapshotArtifacts,
    SnapshotState,
)
from .utils import (
    PAYLOAD_FORMAT,
    archive_file_name,
    canonical_json,
    compute_checksum,
    create_archive,
    generate_backup_id,
    payload_file_name,
    save_manifest,
)

# Plain function or coroutine function taking (percent, message)
ProgressCallback = Callable[[int, str], Any]

MANIFEST_FILE_NAME = "metadata.json"


class _Build:
    """Tracks the state of a single snapshot build."""

    def __init__(self, backup_id: str, on_progress: Optional[ProgressCallback]):
        self.backup_id = backup_id
        self.state = SnapshotState.IDLE
        self._on_progress = on_progress

    async def advance(self, state: SnapshotState, percent: int, message: str) -> None:
        self.state = state
        logger.debug(f"Backup {self.backup_id}: {state.value} ({percent}%)")
        if self._on_progress is not None:
            result = self._on_progress(percent, message)
            if inspect.isawaitable(result):
                await result


class BackupManager:
    """Build snapshots of selected collections and record them in the catalog."""

    def __init__(
        self,
        store: BaseDocumentStore,
        blob: Optional[BaseBlobStorage] = None,
        catalog: Optional[BackupCatalog] = None,
        config: Optional[BackupConfig] = None,
    ):
        """Initialize backup manager.

        Args:
            store: Document store to read collections from
            blob: Optional blob storage for artifact uploads
            catalog: Manifest catalog; defaults to the configured collection of ``store``
            config: Backup settings
        """
        self.store = store
        self.blob = blob
        self.config = config or BackupConfig()
        self.catalog = catalog or BackupCatalog(store, self.config.catalog_collection)
        self.exporter = CollectionExporter(store)
        self.tabular = TabularExporter()

    def default_options(self, **overrides) -> BackupOptions:
        values = {
            "create_archive": self.config.create_archive,
            "include_tabular": self.config.include_tabular,
            "upload_to_storage": self.config.upload_to_storage,
        }
        values.update(overrides)
        return BackupOptions(**values)

    async def create_backup(
        self,
        collections: List[str],
        options: Optional[BackupOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BackupResult:
        """Create a snapshot of the selected collections.

        The payload is held in memory only; the manifest is cataloged as
        the last step, so a failed build leaves no catalog entry.

        Args:
            collections: Collection names to capture
            options: Artifact options (encryption, archive, tables, upload)
            on_progress: Optional ``(percent, message)`` callback

        Returns:
            BackupResult with the cataloged manifest and the in-memory artifacts

        Raises:
            ValueError: No collections selected, or upload requested without blob storage
            PartialFailure: A collection could not be read and failures are not skipped
        """
        if not collections:
            raise ValueError("Select at least one collection to back up")
        options = options or self.default_options()
        if options.upload_to_storage and self.blob is None:
            raise ValueError("upload_to_storage requires a configured blob storage backend")

        build = _Build(options.backup_id or generate_backup_id(), on_progress)
        logger.info(f"Starting backup: {build.backup_id} ({len(collections)} collections)")

        try:
            result = await self._build(build, collections, options)
        except Exception as e:
            await build.advance(SnapshotState.FAILED, 100, f"Backup failed: {e}")
            logger.error(f"Backup {build.backup_id} failed: {e}")
            raise

        await build.advance(SnapshotState.DONE, 100, "Backup completed")
        logger.info(
            f"Backup complete: {build.backup_id} "
            f"({result.manifest.total_documents} documents, {len(result.artifacts.primary):,} bytes)"
        )
        return result

    async def _build(self, build: _Build, collections: List[str], options: BackupOptions) -> BackupResult:
        await build.advance(SnapshotState.SCANNING, 5, "Preparing backup")
        await build.advance(SnapshotState.FETCHING, 10, "Fetching collections")
        payload, failures = await self.exporter.export(collections, skip_failed=options.skip_failed_collections)
        counts = self.exporter.get_statistics(payload)

        await build.advance(SnapshotState.SERIALIZING, 50, "Serializing data")
        plaintext = canonical_json(payload)
        manifest = BackupManifest(
            backup_id=build.backup_id,
            created_at=datetime.now(timezone.utc),
            storekeeper_version=self._get_version(),
            collections=list(payload),
            counts=counts,
            total_documents=sum(counts.values()),
            checksum=compute_checksum(plaintext),
            encrypted=options.encrypt,
            compression="zip" if options.create_archive else "none",
            failed_collections=[failure.collection for failure in failures],
        )

        data = json.loads(plaintext)
        if options.encrypt:
            await build.advance(SnapshotState.ENCRYPTING, 60, "Encrypting data")
            data = encrypt_payload(plaintext, options.password, self.config.kdf_iterations)

        payload_name = payload_file_name(build.backup_id)
        payload_bytes = self._serialize_payload_file(manifest, data)
        manifest.file_sizes["payload"] = len(payload_bytes)

        tables = {}
        # Tables are plaintext, so they are never produced for encrypted backups
        if options.include_tabular and not options.encrypt:
            tables = self.tabular.export(payload)
            manifest.file_sizes["tables"] = sum(len(table) for table in tables.values())

        artifacts = SnapshotArtifacts(
            payload_name=payload_name,
            payload=payload_bytes,
            manifest_json=save_manifest(manifest.model_dump(mode="json")),
            tables=tables,
        )

        if options.create_archive:
            await build.advance(SnapshotState.ARCHIVING, 70, "Creating archive")
            entries = {payload_name: payload_bytes, **tables, MANIFEST_FILE_NAME: artifacts.manifest_json}
            artifacts.archive = await create_archive(entries)
            artifacts.archive_name = archive_file_name(build.backup_id)
            manifest.file_sizes["archive"] = len(artifacts.archive)

        if options.upload_to_storage:
            await build.advance(SnapshotState.UPLOADING, 80, "Uploading to storage")
            manifest.storage_urls = await self._upload(build.backup_id, artifacts)

        artifacts.manifest_json = save_manifest(manifest.model_dump(mode="json"))

        await self.catalog.save(manifest)
        await build.advance(SnapshotState.CATALOGED, 95, "Saving backup metadata")
        return BackupResult(manifest=manifest, artifacts=artifacts)

    @staticmethod
    def _serialize_payload_file(manifest: BackupManifest, data) -> bytes:
        document = {
            "format": PAYLOAD_FORMAT,
            "metadata": manifest.model_dump(mode="json", exclude={"file_sizes", "storage_urls"}),
            "encrypted": manifest.encrypted,
            "data": data,
        }
        return json.dumps(document, indent=2, ensure_ascii=False, default=str).encode("utf-8")

    async def _upload(self, backup_id: str, artifacts: SnapshotArtifacts) -> dict:
        prefix = f"backups/{backup_id}"
        urls = {
            "payload": await self.blob.upload(
                artifacts.payload, f"{prefix}/{artifacts.payload_name}", "application/json"
            ),
            "manifest": await self.blob.upload(
                artifacts.manifest_json, f"{prefix}/{MANIFEST_FILE_NAME}", "application/json"
            ),
        }
        if artifacts.archive is not None:
            urls["archive"] = await self.blob.upload(
                artifacts.archive, f"{prefix}/{artifacts.archive_name}", "application/zip"
            )
        for name, table in artifacts.tables.items():
            urls[name] = await self.blob.upload(table, f"{prefix}/{name}", "text/csv")
        logger.info(f"Uploaded {len(urls)} artifact(s) for backup {backup_id}")
        return urls

    async def list_backups(self) -> List[BackupManifest]:
        return await self.catalog.list()

    async def get_backup(self, backup_id: str) -> Optional[BackupManifest]:
        return await self.catalog.get(backup_id)

    async def delete_backup(self, backup_id: str) -> bool:
        return await self.catalog.delete(backup_id)

    def _get_version(self) -> str:
        """Get storekeeper version."""
        try:
            from .. import __version__
            return __version__
        except ImportError:
            return "unknown"
