"""Test utilities for storekeeper tests."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set

from storekeeper._storage.docs_memory import MemoryDocumentStore
from storekeeper.base import BatchOperation, Document
from storekeeper.exceptions import TransientStoreError


async def seed(store, collection: str, documents: Dict[str, Dict[str, Any]]) -> None:
    """Write ``{doc_id: fields}`` into a collection."""
    for doc_id, fields in documents.items():
        await store.set(collection, doc_id, fields)


def numbered_docs(count: int, prefix: str = "doc") -> Dict[str, Dict[str, Any]]:
    return {f"{prefix}-{i:04d}": {"index": i, "name": f"{prefix} {i}"} for i in range(count)}


@dataclass
class FlakyStore(MemoryDocumentStore):
    """Memory store whose reads or writes fail for selected collections."""

    fail_reads: Set[str] = field(default_factory=set)
    fail_writes: Set[str] = field(default_factory=set)
    reads: List[str] = field(default_factory=list)
    commits: List[List[BatchOperation]] = field(default_factory=list)

    async def list_documents(self, collection: str) -> List[Document]:
        self.reads.append(collection)
        if collection in self.fail_reads:
            raise TransientStoreError(collection, "list", ConnectionError("store unreachable"))
        return await super().list_documents(collection)

    async def count(self, collection: str) -> int:
        if collection in self.fail_reads:
            raise TransientStoreError(collection, "count", ConnectionError("store unreachable"))
        return await super().count(collection)

    async def batch_commit(self, operations: List[BatchOperation]) -> None:
        if any(operation["collection"] in self.fail_writes for operation in operations):
            raise TransientStoreError(operations[0]["collection"], "batch_commit", ConnectionError("write rejected"))
        self.commits.append(list(operations))
        await super().batch_commit(operations)

    def committed_ids(self, collection: str) -> Iterable[str]:
        for batch in self.commits:
            for operation in batch:
                if operation["collection"] == collection:
                    yield operation["id"]
