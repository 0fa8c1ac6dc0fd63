from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, TypedDict

DEFAULT_MAX_BATCH_SIZE = 500


class Document(TypedDict):
    id: str
    fields: Dict[str, Any]


class BatchOperation(TypedDict, total=False):
    op: Literal["set", "delete"]
    collection: str
    id: str
    fields: Dict[str, Any]


def set_operation(collection: str, doc_id: str, fields: Dict[str, Any]) -> BatchOperation:
    return BatchOperation(op="set", collection=collection, id=doc_id, fields=fields)


def delete_operation(collection: str, doc_id: str) -> BatchOperation:
    return BatchOperation(op="delete", collection=collection, id=doc_id)


@dataclass
class StorageNameSpace:
    global_config: dict = field(default_factory=dict)


@dataclass
class BaseDocumentStore(StorageNameSpace):
    """Remote document store shared by the allocator and the backup engine.

    Stores offer no cross-collection transactions and no uniqueness
    constraints. ``batch_commit`` is atomic for up to ``max_batch_size``
    operations and rejects larger batches instead of truncating them.
    """

    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE

    async def list_documents(self, collection: str) -> List[Document]:
        raise NotImplementedError

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def set(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError

    async def batch_commit(self, operations: List[BatchOperation]) -> None:
        raise NotImplementedError

    async def count(self, collection: str) -> int:
        return len(await self.list_documents(collection))

    async def check_health(self) -> bool:
        return True

    def _validate_batch(self, operations: List[BatchOperation]) -> None:
        if len(operations) > self.max_batch_size:
            raise ValueError(
                f"Batch of {len(operations)} operations exceeds the store limit of {self.max_batch_size}"
            )
        for operation in operations:
            if operation.get("op") not in ("set", "delete"):
                raise ValueError(f"Unknown batch operation: {operation.get('op')!r}")
            if not operation.get("collection") or not operation.get("id"):
                raise ValueError("Batch operations require a collection and a document id")


@dataclass
class BaseBlobStorage(StorageNameSpace):
    """Durable blob storage for backup artifacts."""

    async def upload(
        self, data: bytes, path: str, content_type: str = "application/octet-stream"
    ) -> str:
        """Store ``data`` at ``path`` and return a locator for it."""
        raise NotImplementedError
