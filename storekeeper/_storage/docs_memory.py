"""In-process document store, used for tests and single-process deployments."""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..base import BaseDocumentStore, BatchOperation, Document
from .._utils import logger


@dataclass
class MemoryDocumentStore(BaseDocumentStore):
    _collections: Dict[str, Dict[str, Dict[str, Any]]] = field(init=False, default_factory=dict)

    def __post_init__(self):
        self.max_batch_size = self.global_config.get("max_batch_size", self.max_batch_size)

    async def list_documents(self, collection: str) -> List[Document]:
        docs = self._collections.get(collection, {})
        return [Document(id=doc_id, fields=copy.deepcopy(fields)) for doc_id, fields in docs.items()]

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        fields = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(fields) if fields is not None else None

    async def set(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(fields)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collections.get(collection, {}).pop(doc_id, None)

    async def batch_commit(self, operations: List[BatchOperation]) -> None:
        # All-or-nothing: validation happens before any mutation
        self._validate_batch(operations)
        for operation in operations:
            if operation["op"] == "set":
                self._collections.setdefault(operation["collection"], {})[operation["id"]] = (
                    copy.deepcopy(operation.get("fields") or {})
                )
            else:
                self._collections.get(operation["collection"], {}).pop(operation["id"], None)
        logger.debug(f"Committed batch of {len(operations)} operations")

    async def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))
