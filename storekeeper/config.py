"""Configuration management for storekeeper."""

import os
from dataclasses import dataclass, field
from typing import Optional

from .base import DEFAULT_MAX_BATCH_SIZE


@dataclass(frozen=True)
class StoreConfig:
    """Document store configuration."""
    backend: str = "memory"  # memory, redis
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE

    # Redis specific settings
    redis_url: str = "redis://localhost:6379"
    redis_password: Optional[str] = None
    redis_key_prefix: str = "storekeeper"
    redis_max_connections: int = 50
    redis_socket_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> 'StoreConfig':
        """Create config from environment variables."""
        return cls(
            backend=os.getenv("STORE_BACKEND", "memory"),
            max_batch_size=int(os.getenv("STORE_MAX_BATCH_SIZE", str(DEFAULT_MAX_BATCH_SIZE))),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379"),
            redis_password=os.getenv("REDIS_PASSWORD"),
            redis_key_prefix=os.getenv("REDIS_KEY_PREFIX", "storekeeper"),
            redis_max_connections=int(os.getenv("REDIS_MAX_CONNECTIONS", "50")),
            redis_socket_timeout=float(os.getenv("REDIS_SOCKET_TIMEOUT", "5.0")),
        )

    def __post_init__(self):
        """Validate configuration."""
        valid_backends = {"memory", "redis"}
        if self.backend not in valid_backends:
            raise ValueError(f"Unknown store backend: {self.backend}. Valid options: {valid_backends}")
        if not 0 < self.max_batch_size <= DEFAULT_MAX_BATCH_SIZE:
            raise ValueError(
                f"max_batch_size must be between 1 and {DEFAULT_MAX_BATCH_SIZE}, got {self.max_batch_size}"
            )


@dataclass(frozen=True)
class BlobConfig:
    """Durable blob storage for backup artifacts."""
    backend: str = "none"  # none, local, s3
    local_dir: str = "./backup_blobs"
    s3_bucket: Optional[str] = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: Optional[str] = None
    public_base_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'BlobConfig':
        """Create config from environment variables."""
        return cls(
            backend=os.getenv("BLOB_BACKEND", "none"),
            local_dir=os.getenv("BLOB_LOCAL_DIR", "./backup_blobs"),
            s3_bucket=os.getenv("BLOB_S3_BUCKET"),
            s3_region=os.getenv("AWS_REGION", "us-east-1"),
            s3_endpoint_url=os.getenv("BLOB_S3_ENDPOINT_URL"),
            public_base_url=os.getenv("BLOB_PUBLIC_BASE_URL"),
        )

    def __post_init__(self):
        """Validate configuration."""
        valid_backends = {"none", "local", "s3"}
        if self.backend not in valid_backends:
            raise ValueError(f"Unknown blob backend: {self.backend}. Valid options: {valid_backends}")
        if self.backend == "s3" and not self.s3_bucket:
            raise ValueError("s3_bucket is required for the s3 blob backend")


@dataclass(frozen=True)
class BackupConfig:
    """Backup, restore and catalog settings."""
    catalog_collection: str = "backups"
    kdf_iterations: int = 390_000
    conflict_sample_size: int = 10
    create_archive: bool = True
    include_tabular: bool = True
    upload_to_storage: bool = False

    @classmethod
    def from_env(cls) -> 'BackupConfig':
        """Create config from environment variables."""
        return cls(
            catalog_collection=os.getenv("BACKUP_CATALOG_COLLECTION", "backups"),
            kdf_iterations=int(os.getenv("BACKUP_KDF_ITERATIONS", "390000")),
            conflict_sample_size=int(os.getenv("BACKUP_CONFLICT_SAMPLE_SIZE", "10")),
            create_archive=os.getenv("BACKUP_CREATE_ARCHIVE", "true").lower() == "true",
            include_tabular=os.getenv("BACKUP_INCLUDE_TABULAR", "true").lower() == "true",
            upload_to_storage=os.getenv("BACKUP_UPLOAD", "false").lower() == "true",
        )

    def __post_init__(self):
        """Validate configuration."""
        if not self.catalog_collection:
            raise ValueError("catalog_collection must not be empty")
        if self.kdf_iterations <= 0:
            raise ValueError(f"kdf_iterations must be positive, got {self.kdf_iterations}")
        if self.conflict_sample_size <= 0:
            raise ValueError(f"conflict_sample_size must be positive, got {self.conflict_sample_size}")


@dataclass(frozen=True)
class SequenceConfig:
    """Identifier allocation settings."""
    max_validation_rounds: int = 100

    @classmethod
    def from_env(cls) -> 'SequenceConfig':
        """Create config from environment variables."""
        return cls(
            max_validation_rounds=int(os.getenv("SEQUENCE_MAX_VALIDATION_ROUNDS", "100")),
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.max_validation_rounds <= 0:
            raise ValueError(f"max_validation_rounds must be positive, got {self.max_validation_rounds}")


@dataclass(frozen=True)
class StorekeeperConfig:
    """Main storekeeper configuration."""
    store: StoreConfig = field(default_factory=StoreConfig)
    blob: BlobConfig = field(default_factory=BlobConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    sequence: SequenceConfig = field(default_factory=SequenceConfig)

    @classmethod
    def from_env(cls) -> 'StorekeeperConfig':
        """Create complete config from environment variables."""
        return cls(
            store=StoreConfig.from_env(),
            blob=BlobConfig.from_env(),
            backup=BackupConfig.from_env(),
            sequence=SequenceConfig.from_env(),
        )

    def to_dict(self) -> dict:
        """Flatten into the ``global_config`` dict handed to storage backends."""
        return {
            'max_batch_size': self.store.max_batch_size,
            'redis_url': self.store.redis_url,
            'redis_password': self.store.redis_password,
            'redis_key_prefix': self.store.redis_key_prefix,
            'redis_max_connections': self.store.redis_max_connections,
            'redis_socket_timeout': self.store.redis_socket_timeout,
            'blob_local_dir': self.blob.local_dir,
            'blob_s3_bucket': self.blob.s3_bucket,
            'blob_s3_region': self.blob.s3_region,
            'blob_s3_endpoint_url': self.blob.s3_endpoint_url,
            'blob_public_base_url': self.blob.public_base_url,
        }
