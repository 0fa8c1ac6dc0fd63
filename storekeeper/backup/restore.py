"""Restore engine: load, verify and write a snapshot back into the store."""

import asyncio
import inspect
import json
import zipfile
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import ValidationError

from .._utils import chunked, logger
from ..base import BaseDocumentStore, set_operation
from ..config import BackupConfig
from ..exceptions import ConflictError, IntegrityError, SnapshotFormatError
from .crypto import decrypt_payload, is_encrypted_envelope
from .manager import MANIFEST_FILE_NAME, ProgressCallback
from .models import (
    BackupManifest,
    BackupPayload,
    CollectionConflict,
    CollectionFailure,
    LoadedSnapshot,
    RestoreConflictReport,
    RestoreMode,
    RestoreReport,
    RestoreState,
)
from .utils import (
    PAYLOAD_FORMAT,
    compute_payload_checksum,
    extract_archive,
    is_archive,
    load_manifest,
    normalize_document,
)


def _decode_json(data: bytes, what: str) -> Any:
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SnapshotFormatError(f"Invalid backup file format: {what} is not valid JSON ({e})") from e


class _RestoreRun:
    """Tracks the state of a single restore."""

    def __init__(self, on_progress: Optional[ProgressCallback]):
        self.state = RestoreState.IDLE
        self._on_progress = on_progress

    async def advance(self, state: RestoreState, percent: int, message: str) -> None:
        self.state = state
        logger.debug(f"Restore: {state.value} ({percent}%)")
        if self._on_progress is not None:
            result = self._on_progress(percent, message)
            if inspect.isawaitable(result):
                await result


class RestoreEngine:
    """Reconstitute collections from a snapshot artifact.

    Writes are committed in batches no larger than the store's limit, one
    collection at a time. A failing collection is recorded in the report and
    the remaining collections still run.
    """

    def __init__(self, store: BaseDocumentStore, config: Optional[BackupConfig] = None):
        self.store = store
        self.config = config or BackupConfig()

    async def load(self, artifact: bytes, filename: Optional[str] = None,
                   password: Optional[str] = None) -> LoadedSnapshot:
        """Parse (and decrypt) an archive or a bare payload file.

        Raises:
            SnapshotFormatError: The artifact cannot be parsed
            DecryptionError: The payload is encrypted and the password is missing or wrong
        """
        raw_metadata = None
        source = "payload"
        payload_bytes = artifact

        if is_archive(artifact, filename):
            try:
                entries = await extract_archive(artifact)
            except zipfile.BadZipFile as e:
                raise SnapshotFormatError(f"Invalid backup archive: {e}") from e
            source = "archive"
            candidates = [
                name for name in entries
                if name.endswith(".json") and name != MANIFEST_FILE_NAME and "/" not in name
            ]
            if not candidates:
                raise SnapshotFormatError("Invalid backup archive: no payload file found")
            payload_bytes = entries[sorted(candidates)[0]]
            if MANIFEST_FILE_NAME in entries:
                try:
                    raw_metadata = load_manifest(entries[MANIFEST_FILE_NAME])
                except (ValueError, UnicodeDecodeError) as e:
                    raise SnapshotFormatError(f"Invalid {MANIFEST_FILE_NAME}: {e}") from e

        document = _decode_json(payload_bytes, "payload")
        if not isinstance(document, dict):
            raise SnapshotFormatError("Invalid backup file format: expected a JSON object")

        encrypted = False
        native = raw_metadata is not None or document.get("format") == PAYLOAD_FORMAT
        if document.get("format") == PAYLOAD_FORMAT or {"metadata", "data"} <= set(document):
            raw_metadata = raw_metadata or document.get("metadata")
            data = document.get("data")
            encrypted = bool(document.get("encrypted")) or is_encrypted_envelope(data)
            if encrypted:
                data = _decode_json(decrypt_payload(data, password), "decrypted payload")
        else:
            # Bare {collection: [documents]} payload
            data = document

        payload, integrity_errors = self._normalize_payload(data)

        manifest = None
        if raw_metadata is not None:
            try:
                manifest = BackupManifest.model_validate(raw_metadata)
            except ValidationError as e:
                if native:
                    integrity_errors.append(f"Backup metadata is invalid: {e.error_count()} error(s)")
                else:
                    logger.warning(f"Ignoring unrecognised legacy backup metadata: {e.error_count()} error(s)")

        if manifest is not None:
            integrity_errors.extend(self._validate(payload, manifest))

        logger.info(
            f"Loaded backup {manifest.backup_id if manifest else '(no manifest)'}: "
            f"{len(payload)} collection(s), {len(integrity_errors)} integrity issue(s)"
        )
        return LoadedSnapshot(
            payload=payload,
            manifest=manifest,
            encrypted=encrypted,
            source=source,
            raw_metadata=raw_metadata,
            integrity_errors=integrity_errors,
        )

    @staticmethod
    def _normalize_payload(data: Any) -> Tuple[BackupPayload, List[str]]:
        if not isinstance(data, dict):
            raise SnapshotFormatError("Invalid backup file format: payload must map collections to documents")

        payload: BackupPayload = {}
        errors: List[str] = []
        for collection, documents in data.items():
            if not isinstance(documents, list):
                raise SnapshotFormatError(f"Invalid backup file format: collection {collection} is not a list")
            normalized = [normalize_document(raw) for raw in documents]
            payload[collection] = [doc for doc in normalized if doc is not None]
            skipped = len(documents) - len(payload[collection])
            if skipped:
                errors.append(f"Collection {collection}: {skipped} document(s) without an id")
        return payload, errors

    @staticmethod
    def _validate(payload: BackupPayload, manifest: BackupManifest) -> List[str]:
        """Compare a payload with its manifest; returns human-readable issues."""
        errors = []
        for collection in manifest.collections:
            if collection not in payload:
                errors.append(f"Collection {collection} is missing from the backup data")
                continue
            expected = manifest.counts.get(collection, 0)
            actual = len(payload[collection])
            if expected != actual:
                errors.append(f"Collection {collection}: expected {expected} documents, found {actual}")
        for collection in payload:
            if collection not in manifest.counts:
                errors.append(f"Collection {collection} is not listed in the backup metadata")

        actual_checksum = compute_payload_checksum(payload)
        if actual_checksum != manifest.checksum:
            errors.append("Checksum mismatch: backup data may be corrupted")
        return errors

    async def _existing_ids(self, collection: str) -> Set[str]:
        return {document["id"] for document in await self.store.list_documents(collection)}

    def _conflict_for(self, collection: str, documents, existing: Set[str]) -> CollectionConflict:
        duplicates = [doc["id"] for doc in documents if doc["id"] in existing]
        return CollectionConflict(
            collection=collection,
            count=len(duplicates),
            sample_ids=duplicates[: self.config.conflict_sample_size],
        )

    async def check_conflicts(self, payload: BackupPayload) -> RestoreConflictReport:
        """Ids present both in the payload and in the live store, per collection."""
        names = list(payload)
        existing = await asyncio.gather(*(self._existing_ids(name) for name in names))
        conflicts = [
            self._conflict_for(name, payload[name], ids) for name, ids in zip(names, existing)
        ]
        return RestoreConflictReport(conflicts=[conflict for conflict in conflicts if conflict.count])

    async def restore(
        self,
        artifact: bytes,
        filename: Optional[str] = None,
        password: Optional[str] = None,
        mode: RestoreMode = RestoreMode.FULL,
        collections: Optional[List[str]] = None,
        confirm_integrity: bool = False,
        confirm_conflicts: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RestoreReport:
        """Restore a snapshot into the live store.

        Args:
            artifact: Archive or payload file bytes
            filename: Original file name, used to recognise archives
            password: Password for encrypted payloads
            mode: ``full`` overwrites documents sharing an id; ``merge`` only adds new ones
            collections: Restore only these collections of the payload
            confirm_integrity: Proceed although the payload does not match its manifest
            confirm_conflicts: Proceed with a merge although ids already exist
            cancel_event: Checked between batches; set it to stop before the next batch
            on_progress: Optional ``(percent, message)`` callback

        Returns:
            RestoreReport with per-collection results

        Raises:
            SnapshotFormatError: Unparseable artifact
            DecryptionError: Missing or wrong password
            IntegrityError: Validation issues and ``confirm_integrity`` is False
            ConflictError: Merge conflicts and ``confirm_conflicts`` is False
        """
        mode = RestoreMode(mode)
        run = _RestoreRun(on_progress)
        try:
            return await self._restore(
                artifact, filename, password, mode, collections,
                confirm_integrity, confirm_conflicts, cancel_event, run,
            )
        except Exception as e:
            await run.advance(RestoreState.FAILED, 100, f"Restore failed: {e}")
            raise

    async def _restore(self, artifact, filename, password, mode, collections,
                       confirm_integrity, confirm_conflicts, cancel_event, run: _RestoreRun) -> RestoreReport:
        await run.advance(RestoreState.LOADED, 5, "Reading backup file")
        loaded = await self.load(artifact, filename, password)
        await run.advance(RestoreState.PARSED, 20, "Backup parsed")

        payload = loaded.payload
        if collections is not None:
            missing = [name for name in collections if name not in payload]
            if missing:
                raise ValueError(f"Collections not present in backup: {missing}")
            payload = {name: payload[name] for name in collections}

        if loaded.integrity_errors:
            if not confirm_integrity:
                raise IntegrityError(
                    loaded.integrity_errors,
                    expected_checksum=loaded.manifest.checksum if loaded.manifest else None,
                    actual_checksum=compute_payload_checksum(loaded.payload),
                )
            logger.warning(f"Restoring despite integrity issues: {'; '.join(loaded.integrity_errors)}")
        await run.advance(RestoreState.VALIDATED, 30, "Backup validated")

        report = RestoreReport(
            backup_id=loaded.manifest.backup_id if loaded.manifest else None,
            mode=mode,
            integrity_warnings=list(loaded.integrity_errors),
        )

        existing: Dict[str, Set[str]] = {}
        if mode == RestoreMode.MERGE:
            conflicts = []
            for collection, documents in payload.items():
                try:
                    existing[collection] = await self._existing_ids(collection)
                except Exception as e:
                    logger.warning(f"Failed to read existing documents of {collection}: {e}")
                    report.failures.append(
                        CollectionFailure(collection=collection, operation="read", error=str(e))
                    )
                    continue
                conflict = self._conflict_for(collection, documents, existing[collection])
                if conflict.count:
                    conflicts.append(conflict)
            report.conflicts = RestoreConflictReport(conflicts=conflicts)
            if report.conflicts.has_conflicts and not confirm_conflicts:
                raise ConflictError(report.conflicts)
            await run.advance(RestoreState.CONFLICT_CHECKED, 40, "Conflicts checked")

        await run.advance(RestoreState.WRITING, 40, "Restoring collections")
        failed = {failure.collection for failure in report.failures}
        total = max(len(payload), 1)
        for index, (collection, documents) in enumerate(payload.items()):
            if collection in failed:
                continue
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                break

            if mode == RestoreMode.MERGE:
                to_write = [doc for doc in documents if doc["id"] not in existing[collection]]
                report.documents_skipped[collection] = len(documents) - len(to_write)
            else:
                to_write = documents

            written, cancelled = await self._write_collection(collection, to_write, report, cancel_event)
            report.documents_written[collection] = written
            report.total_written += written
            if collection not in {failure.collection for failure in report.failures}:
                report.collections_restored.append(collection)
                logger.info(f"Restored {collection}: {written} document(s)")
            if cancelled:
                report.cancelled = True
                break

            await run.advance(RestoreState.WRITING, 40 + int(55 * (index + 1) / total), f"Restored {collection}")

        await run.advance(RestoreState.DONE, 100, "Restore completed")
        logger.info(
            f"Restore complete: {report.total_written} document(s) in "
            f"{len(report.collections_restored)} collection(s), {len(report.failures)} failure(s)"
            + (" (cancelled)" if report.cancelled else "")
        )
        return report

    async def _write_collection(self, collection: str, documents, report: RestoreReport,
                                cancel_event: Optional[asyncio.Event]) -> Tuple[int, bool]:
        written = 0
        for batch in chunked(list(documents), self.store.max_batch_size):
            if written and cancel_event is not None and cancel_event.is_set():
                return written, True
            try:
                await self.store.batch_commit(
                    [set_operation(collection, doc["id"], doc["fields"]) for doc in batch]
                )
            except Exception as e:
                logger.warning(f"Failed to restore collection {collection} after {written} documents: {e}")
                report.failures.append(CollectionFailure(
                    collection=collection, operation="write", error=str(e), documents_processed=written,
                ))
                return written, False
            written += len(batch)
            logger.debug(f"Restored batch of {len(batch)} into {collection}")
        return written, False
