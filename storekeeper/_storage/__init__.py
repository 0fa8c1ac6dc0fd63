"""Storage module with lazy loading support."""

from typing import TYPE_CHECKING

from .factory import StorageFactory, _register_backends

if TYPE_CHECKING:
    from .docs_memory import MemoryDocumentStore
    from .docs_redis import RedisDocumentStore
    from .blob_local import LocalBlobStorage
    from .blob_s3 import S3BlobStorage


def __getattr__(name):
    """Lazy import storage backends."""
    if name == "MemoryDocumentStore":
        from .docs_memory import MemoryDocumentStore
        return MemoryDocumentStore
    elif name == "RedisDocumentStore":
        from .docs_redis import RedisDocumentStore
        return RedisDocumentStore
    elif name == "LocalBlobStorage":
        from .blob_local import LocalBlobStorage
        return LocalBlobStorage
    elif name == "S3BlobStorage":
        from .blob_s3 import S3BlobStorage
        return S3BlobStorage
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "StorageFactory",
    "_register_backends",
    "MemoryDocumentStore",
    "RedisDocumentStore",
    "LocalBlobStorage",
    "S3BlobStorage",
]
