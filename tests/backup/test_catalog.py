"""Tests for BackupCatalog and CollectionStatsScanner."""

from datetime import datetime, timedelta, timezone

import pytest

from storekeeper.backup import BackupCatalog, BackupManifest, CollectionStatsScanner, DEFAULT_COLLECTIONS
from storekeeper.exceptions import ManifestValidationError
from tests.utils import FlakyStore, numbered_docs, seed

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def make_manifest(backup_id: str, created_at: datetime = NOW, **overrides) -> BackupManifest:
    values = dict(
        backup_id=backup_id,
        created_at=created_at,
        collections=["A", "B"],
        counts={"A": 2, "B": 0},
        total_documents=2,
        checksum="sha256:" + "0" * 64,
    )
    values.update(overrides)
    return BackupManifest(**values)


@pytest.mark.asyncio
async def test_list_newest_first(store):
    catalog = BackupCatalog(store)
    await catalog.save(make_manifest("older", NOW - timedelta(days=1)))
    await catalog.save(make_manifest("newer", NOW))

    assert [manifest.backup_id for manifest in await catalog.list()] == ["newer", "older"]


@pytest.mark.asyncio
async def test_get_and_delete(store):
    catalog = BackupCatalog(store, collection="snapshots")
    await catalog.save(make_manifest("s1"))

    assert (await catalog.get("s1")).counts == {"A": 2, "B": 0}
    assert await store.get("snapshots", "s1") is not None
    assert await catalog.delete("s1") is True
    assert await catalog.get("s1") is None
    assert await catalog.delete("s1") is False


@pytest.mark.asyncio
async def test_invalid_manifest_not_saved(store):
    catalog = BackupCatalog(store)
    manifest = make_manifest("bad")
    manifest.total_documents = 5

    with pytest.raises(ManifestValidationError):
        await catalog.save(manifest)
    assert await store.get("backups", "bad") is None


@pytest.mark.asyncio
async def test_list_skips_unreadable_records(store):
    catalog = BackupCatalog(store)
    await catalog.save(make_manifest("good"))
    await store.set("backups", "junk", {"backup_id": "junk"})

    assert [manifest.backup_id for manifest in await catalog.list()] == ["good"]


def test_manifest_validation():
    with pytest.raises(ValueError):
        make_manifest("x", counts={"A": 2})
    with pytest.raises(ValueError):
        make_manifest("x", checksum="md5:abc")
    with pytest.raises(ValueError):
        make_manifest("x", counts={"A": 3, "B": -1})


@pytest.mark.asyncio
async def test_stats_scan_isolates_failures():
    store = FlakyStore(global_config={}, fail_reads={"leads"})
    await seed(store, "customers", numbered_docs(3))

    stats = await CollectionStatsScanner(store).scan(["customers", "leads", "tags"])

    assert stats == {"customers": 3, "leads": "error", "tags": 0}


@pytest.mark.asyncio
async def test_stats_default_collections(store):
    stats = await CollectionStatsScanner(store).scan()
    assert list(stats) == [descriptor.name for descriptor in DEFAULT_COLLECTIONS]
