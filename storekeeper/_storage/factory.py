"""Storage factory for centralized backend creation."""

from typing import Callable, Dict, Type

from storekeeper.base import BaseBlobStorage, BaseDocumentStore


class StorageFactory:
    """Factory for creating storage backends with validation and registration."""

    _document_backends: Dict[str, Callable[[], Type[BaseDocumentStore]]] = {}
    _blob_backends: Dict[str, Callable[[], Type[BaseBlobStorage]]] = {}

    ALLOWED_DOCUMENT = {"memory", "redis"}
    ALLOWED_BLOB = {"local", "s3"}

    @classmethod
    def register_document(cls, name: str, backend_loader: Callable[[], Type[BaseDocumentStore]]) -> None:
        """Register a document store backend.

        Args:
            name: Backend name (must be in ALLOWED_DOCUMENT)
            backend_loader: Function that returns the document store class

        Raises:
            ValueError: If backend name not in allowed list
        """
        if name not in cls.ALLOWED_DOCUMENT:
            raise ValueError(f"Backend {name} not in allowed document backends: {cls.ALLOWED_DOCUMENT}")
        cls._document_backends[name] = backend_loader

    @classmethod
    def register_blob(cls, name: str, backend_loader: Callable[[], Type[BaseBlobStorage]]) -> None:
        """Register a blob storage backend.

        Raises:
            ValueError: If backend name not in allowed list
        """
        if name not in cls.ALLOWED_BLOB:
            raise ValueError(f"Backend {name} not in allowed blob backends: {cls.ALLOWED_BLOB}")
        cls._blob_backends[name] = backend_loader

    @classmethod
    def create_document_store(cls, backend: str, global_config: dict) -> BaseDocumentStore:
        """Create a document store instance.

        Raises:
            ValueError: If backend is not registered
        """
        if backend not in cls._document_backends:
            raise ValueError(f"Unknown document backend: {backend}. Registered: {sorted(cls._document_backends)}")
        store_class = cls._document_backends[backend]()
        return store_class(global_config=global_config)

    @classmethod
    def create_blob_storage(cls, backend: str, global_config: dict) -> BaseBlobStorage:
        """Create a blob storage instance.

        Raises:
            ValueError: If backend is not registered
        """
        if backend not in cls._blob_backends:
            raise ValueError(f"Unknown blob backend: {backend}. Registered: {sorted(cls._blob_backends)}")
        blob_class = cls._blob_backends[backend]()
        return blob_class(global_config=global_config)


def _get_memory_store():
    from .docs_memory import MemoryDocumentStore
    return MemoryDocumentStore


def _get_redis_store():
    from .docs_redis import RedisDocumentStore
    return RedisDocumentStore


def _get_local_blob():
    from .blob_local import LocalBlobStorage
    return LocalBlobStorage


def _get_s3_blob():
    from .blob_s3 import S3BlobStorage
    return S3BlobStorage


def _register_backends():
    """Register all built-in storage backends with lazy loading."""
    StorageFactory.register_document("memory", _get_memory_store)
    StorageFactory.register_document("redis", _get_redis_store)
    StorageFactory.register_blob("local", _get_local_blob)
    StorageFactory.register_blob("s3", _get_s3_blob)


_register_backends()
