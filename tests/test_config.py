"""Tests for configuration management."""

import os
from unittest.mock import patch

import pytest

from storekeeper.config import (
    BackupConfig,
    BlobConfig,
    SequenceConfig,
    StoreConfig,
    StorekeeperConfig,
)


class TestStoreConfig:
    """Test document store configuration."""

    def test_defaults(self):
        config = StoreConfig()
        assert config.backend == "memory"
        assert config.max_batch_size == 500
        assert config.redis_key_prefix == "storekeeper"

    def test_from_env(self):
        with patch.dict(os.environ, {
            "STORE_BACKEND": "redis",
            "STORE_MAX_BATCH_SIZE": "250",
            "REDIS_URL": "redis://cache:6380",
            "REDIS_PASSWORD": "pw",
        }):
            config = StoreConfig.from_env()
            assert config.backend == "redis"
            assert config.max_batch_size == 250
            assert config.redis_url == "redis://cache:6380"
            assert config.redis_password == "pw"

    def test_validation(self):
        with pytest.raises(ValueError, match="Unknown store backend"):
            StoreConfig(backend="firestore")
        with pytest.raises(ValueError, match="max_batch_size"):
            StoreConfig(max_batch_size=501)
        with pytest.raises(ValueError, match="max_batch_size"):
            StoreConfig(max_batch_size=0)


class TestBlobConfig:

    def test_defaults(self):
        assert BlobConfig().backend == "none"

    def test_s3_requires_bucket(self):
        with pytest.raises(ValueError):
            BlobConfig(backend="s3")
        assert BlobConfig(backend="s3", s3_bucket="b").s3_bucket == "b"

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown blob backend"):
            BlobConfig(backend="gcs")


class TestBackupConfig:

    def test_from_env(self):
        with patch.dict(os.environ, {
            "BACKUP_CATALOG_COLLECTION": "snapshots",
            "BACKUP_KDF_ITERATIONS": "1000",
            "BACKUP_INCLUDE_TABULAR": "false",
        }):
            config = BackupConfig.from_env()
            assert config.catalog_collection == "snapshots"
            assert config.kdf_iterations == 1000
            assert config.include_tabular is False
            assert config.create_archive is True

    def test_validation(self):
        with pytest.raises(ValueError):
            BackupConfig(kdf_iterations=0)
        with pytest.raises(ValueError):
            BackupConfig(catalog_collection="")


class TestSequenceConfig:

    def test_validation(self):
        assert SequenceConfig().max_validation_rounds == 100
        with pytest.raises(ValueError):
            SequenceConfig(max_validation_rounds=0)


class TestStorekeeperConfig:

    def test_from_env(self):
        with patch.dict(os.environ, {"STORE_BACKEND": "memory", "SEQUENCE_MAX_VALIDATION_ROUNDS": "7"}):
            config = StorekeeperConfig.from_env()
            assert config.sequence.max_validation_rounds == 7

    def test_to_dict(self):
        config = StorekeeperConfig(
            store=StoreConfig(max_batch_size=100),
            blob=BlobConfig(backend="local", local_dir="/tmp/blobs"),
        )
        global_config = config.to_dict()
        assert global_config["max_batch_size"] == 100
        assert global_config["blob_local_dir"] == "/tmp/blobs"
        assert "redis_url" in global_config
