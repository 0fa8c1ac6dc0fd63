"""Tests for RestoreEngine."""

import asyncio
import io
import json
import zipfile

import pytest

from storekeeper._storage.docs_memory import MemoryDocumentStore
from storekeeper.backup import BackupManager, BackupOptions, RestoreEngine, RestoreMode
from storekeeper.config import BackupConfig
from storekeeper.exceptions import (
    ConflictError,
    DecryptionError,
    IntegrityError,
    SnapshotFormatError,
)
from tests.utils import FlakyStore, numbered_docs, seed

FAST = BackupConfig(kdf_iterations=1_000)


async def build_snapshot(collections, contents, **options):
    """Build a snapshot in a throwaway source store and return its artifacts."""
    source = MemoryDocumentStore(global_config={})
    for collection, documents in contents.items():
        await seed(source, collection, documents)
    options.setdefault("backup_id", "snap")
    result = await BackupManager(source, config=FAST).create_backup(collections, BackupOptions(**options))
    return result


def corrupt_one_byte(payload: bytes, needle: bytes) -> bytes:
    index = payload.index(needle)
    corrupted = bytearray(payload)
    corrupted[index] = ord("X") if corrupted[index] != ord("X") else ord("Y")
    return bytes(corrupted)


@pytest.fixture
def engine(store):
    return RestoreEngine(store, FAST)


@pytest.mark.asyncio
async def test_full_restore_into_empty_store(store, engine):
    snapshot = await build_snapshot(["A", "B"], {"A": numbered_docs(3)})

    report = await engine.restore(snapshot.artifacts.primary, snapshot.artifacts.primary_name)

    assert len(await store.list_documents("A")) == 3
    assert len(await store.list_documents("B")) == 0
    assert report.documents_written == {"A": 3, "B": 0}
    assert report.collections_restored == ["A", "B"]
    assert report.mode == RestoreMode.FULL
    assert report.success


@pytest.mark.asyncio
async def test_full_restore_overwrites_existing(store, engine):
    snapshot = await build_snapshot(["A"], {"A": {"x": {"v": "backup"}}})
    await seed(store, "A", {"x": {"v": "live"}, "y": {"v": "untouched"}})

    await engine.restore(snapshot.artifacts.primary, snapshot.artifacts.primary_name)

    assert await store.get("A", "x") == {"v": "backup"}
    assert await store.get("A", "y") == {"v": "untouched"}


@pytest.mark.asyncio
async def test_merge_restore_reports_and_keeps_existing(store, engine):
    snapshot = await build_snapshot(["A"], {"A": {"x": {"v": "backup"}, "z": {"v": "new"}}})
    await seed(store, "A", {"x": {"v": "live"}})

    with pytest.raises(ConflictError) as exc_info:
        await engine.restore(snapshot.artifacts.primary, snapshot.artifacts.primary_name, mode="merge")
    conflict = exc_info.value.report.for_collection("A")
    assert conflict.count == 1
    assert conflict.sample_ids == ["x"]
    assert await store.get("A", "z") is None

    report = await engine.restore(
        snapshot.artifacts.primary, snapshot.artifacts.primary_name,
        mode=RestoreMode.MERGE, confirm_conflicts=True,
    )

    assert await store.get("A", "x") == {"v": "live"}
    assert await store.get("A", "z") == {"v": "new"}
    assert report.conflicts.total == 1
    assert report.documents_written == {"A": 1}
    assert report.documents_skipped == {"A": 1}


@pytest.mark.asyncio
async def test_conflict_sample_is_bounded(store, engine):
    documents = numbered_docs(25)
    snapshot = await build_snapshot(["A"], {"A": documents})
    await seed(store, "A", documents)

    report = await engine.check_conflicts(
        (await engine.load(snapshot.artifacts.primary, snapshot.artifacts.primary_name)).payload
    )

    assert report.conflicts[0].count == 25
    assert report.conflicts[0].sample_ids == [f"doc-{i:04d}" for i in range(10)]


@pytest.mark.asyncio
async def test_corrupted_payload_raises_integrity_warning(store, engine):
    snapshot = await build_snapshot(
        ["A"], {"A": {"x": {"name": "Original"}}}, create_archive=False
    )
    corrupted = corrupt_one_byte(snapshot.artifacts.payload, b"Original")

    with pytest.raises(IntegrityError) as exc_info:
        await engine.restore(corrupted, snapshot.artifacts.payload_name)

    assert exc_info.value.expected_checksum == snapshot.manifest.checksum
    assert exc_info.value.actual_checksum != snapshot.manifest.checksum
    assert any("Checksum mismatch" in error for error in exc_info.value.errors)
    assert await store.list_documents("A") == []

    report = await engine.restore(corrupted, snapshot.artifacts.payload_name, confirm_integrity=True)
    assert report.integrity_warnings
    assert report.documents_written == {"A": 1}


@pytest.mark.asyncio
async def test_corrupted_archive_member_detected(store, engine):
    snapshot = await build_snapshot(["A"], {"A": {"x": {"name": "Original"}}})
    with zipfile.ZipFile(io.BytesIO(snapshot.artifacts.archive)) as archive:
        entries = {name: archive.read(name) for name in archive.namelist()}
    entries["backup_snap.json"] = corrupt_one_byte(entries["backup_snap.json"], b"Original")
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)

    with pytest.raises(IntegrityError):
        await engine.restore(buffer.getvalue(), "backup_snap.zip")


@pytest.mark.asyncio
async def test_count_mismatch_detected(engine):
    snapshot = await build_snapshot(["A"], {"A": numbered_docs(2)}, create_archive=False)
    document = json.loads(snapshot.artifacts.payload)
    document["data"]["A"].pop()

    loaded = await engine.load(json.dumps(document).encode())

    assert "Collection A: expected 2 documents, found 1" in loaded.integrity_errors


@pytest.mark.asyncio
async def test_wrong_password_performs_no_writes():
    store = FlakyStore(global_config={})
    engine = RestoreEngine(store, FAST)
    snapshot = await build_snapshot(["A"], {"A": numbered_docs(3)}, encrypt=True, password="right")

    with pytest.raises(DecryptionError):
        await engine.restore(snapshot.artifacts.primary, snapshot.artifacts.primary_name, password="wrong")
    with pytest.raises(DecryptionError):
        await engine.restore(snapshot.artifacts.primary, snapshot.artifacts.primary_name)

    assert store.commits == []
    assert await store.list_documents("A") == []


@pytest.mark.asyncio
async def test_corrupted_envelope_token_performs_no_writes():
    store = FlakyStore(global_config={})
    engine = RestoreEngine(store, FAST)
    snapshot = await build_snapshot(["A"], {"A": numbered_docs(1)}, encrypt=True, password="right")
    document = json.loads(snapshot.artifacts.payload)
    document["data"]["token"] = 12345

    with pytest.raises(DecryptionError):
        await engine.restore(json.dumps(document).encode(), "backup_snap.json", password="right")

    assert store.commits == []


@pytest.mark.asyncio
async def test_encrypted_restore(store, engine):
    snapshot = await build_snapshot(["A"], {"A": numbered_docs(2)}, encrypt=True, password="right")

    report = await engine.restore(
        snapshot.artifacts.primary, snapshot.artifacts.primary_name, password="right"
    )

    assert report.documents_written == {"A": 2}
    assert (await engine.load(snapshot.artifacts.primary, password="right")).encrypted


@pytest.mark.asyncio
async def test_large_collection_is_batched():
    store = FlakyStore(global_config={"max_batch_size": 100})
    engine = RestoreEngine(store, FAST)
    snapshot = await build_snapshot(["A"], {"A": numbered_docs(250)}, create_archive=False)

    report = await engine.restore(snapshot.artifacts.payload)

    assert [len(batch) for batch in store.commits] == [100, 100, 50]
    assert report.documents_written == {"A": 250}
    assert await store.count("A") == 250


@pytest.mark.asyncio
async def test_write_failure_is_isolated_per_collection():
    store = FlakyStore(global_config={}, fail_writes={"A"})
    engine = RestoreEngine(store, FAST)
    snapshot = await build_snapshot(["A", "B"], {"A": numbered_docs(2), "B": numbered_docs(3)})

    report = await engine.restore(snapshot.artifacts.primary, snapshot.artifacts.primary_name)

    assert not report.success
    assert [failure.collection for failure in report.failures] == ["A"]
    assert report.collections_restored == ["B"]
    assert await store.count("B") == 3


@pytest.mark.asyncio
async def test_selective_restore(store, engine):
    snapshot = await build_snapshot(["A", "B"], {"A": numbered_docs(2), "B": numbered_docs(3)})

    report = await engine.restore(snapshot.artifacts.primary, snapshot.artifacts.primary_name, collections=["B"])

    assert report.collections_restored == ["B"]
    assert await store.count("A") == 0

    with pytest.raises(ValueError, match="not present"):
        await engine.restore(snapshot.artifacts.primary, snapshot.artifacts.primary_name, collections=["C"])


@pytest.mark.asyncio
async def test_cancel_between_batches():
    store = FlakyStore(global_config={"max_batch_size": 10})
    engine = RestoreEngine(store, FAST)
    snapshot = await build_snapshot(["A"], {"A": numbered_docs(30)}, create_archive=False)
    cancel = asyncio.Event()

    original_commit = store.batch_commit

    async def commit_then_cancel(operations):
        await original_commit(operations)
        cancel.set()

    store.batch_commit = commit_then_cancel
    report = await engine.restore(snapshot.artifacts.payload, cancel_event=cancel)

    assert report.cancelled
    assert report.documents_written == {"A": 10}
    assert await store.count("A") == 10


@pytest.mark.asyncio
async def test_legacy_bare_payload(store, engine):
    legacy = {"customers": [{"id": "c1", "name": "Flat"}, {"id": "c2", "fields": {"name": "Nested"}}]}

    report = await engine.restore(json.dumps(legacy).encode(), "old-backup.json")

    assert report.backup_id is None
    assert await store.get("customers", "c1") == {"name": "Flat"}
    assert await store.get("customers", "c2") == {"name": "Nested"}


@pytest.mark.asyncio
async def test_unparseable_artifacts(engine):
    with pytest.raises(SnapshotFormatError):
        await engine.restore(b"not json at all")
    with pytest.raises(SnapshotFormatError):
        await engine.restore(b"PK\x03\x04garbage", "x.zip")
    with pytest.raises(SnapshotFormatError):
        await engine.restore(json.dumps({"A": "not a list"}).encode())
