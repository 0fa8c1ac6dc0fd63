"""Storekeeper: wires a document store to the allocator and the backup engine."""

from typing import Optional

from ._storage import StorageFactory
from ._utils import logger
from .backup import BackupCatalog, BackupManager, BulkEraser, CollectionStatsScanner, RestoreEngine
from .base import BaseBlobStorage, BaseDocumentStore
from .config import StorekeeperConfig
from .sequence import SequenceAllocator


class Storekeeper:
    """Entry point bundling every component over one document store.

    Components are stateless apart from the store handle, so a single
    instance can serve concurrent requests.
    """

    def __init__(
        self,
        config: Optional[StorekeeperConfig] = None,
        store: Optional[BaseDocumentStore] = None,
        blob: Optional[BaseBlobStorage] = None,
    ):
        """Initialize from configuration.

        Args:
            config: Complete configuration; defaults to ``StorekeeperConfig()``
            store: Pre-built document store, overriding ``config.store.backend``
            blob: Pre-built blob storage, overriding ``config.blob.backend``
        """
        self.config = config or StorekeeperConfig()
        global_config = self.config.to_dict()

        self.store = store or StorageFactory.create_document_store(self.config.store.backend, global_config)
        if blob is None and self.config.blob.backend != "none":
            blob = StorageFactory.create_blob_storage(self.config.blob.backend, global_config)
        self.blob = blob

        self.allocator = SequenceAllocator(self.store, self.config.sequence)
        self.catalog = BackupCatalog(self.store, self.config.backup.catalog_collection)
        self.backups = BackupManager(self.store, self.blob, self.catalog, self.config.backup)
        self.restorer = RestoreEngine(self.store, self.config.backup)
        self.eraser = BulkEraser(self.store)
        self.stats = CollectionStatsScanner(self.store)

        logger.info(
            f"Storekeeper initialized (store={type(self.store).__name__}, "
            f"blob={type(self.blob).__name__ if self.blob else 'none'})"
        )

    @classmethod
    def from_env(cls) -> "Storekeeper":
        return cls(StorekeeperConfig.from_env())

    async def check_health(self) -> bool:
        try:
            return await self.store.check_health()
        except Exception as e:
            logger.warning(f"Store health check failed: {e}")
            return False

    async def close(self) -> None:
        """Release store connections, if the backend holds any."""
        close = getattr(self.store, "close", None)
        if close is not None:
            await close()
