"""Document store exporter: reads selected collections into a payload."""

import asyncio
from typing import Dict, List, Tuple

from ..._utils import logger, unique_preserving_order
from ...base import BaseDocumentStore, Document
from ...exceptions import PartialFailure, TransientStoreError
from ..models import BackupPayload, CollectionFailure


class CollectionExporter:
    """Export collections of a document store into an in-memory payload."""

    def __init__(self, store: BaseDocumentStore):
        self.store = store

    async def export(
        self, collections: List[str], skip_failed: bool = False
    ) -> Tuple[BackupPayload, List[CollectionFailure]]:
        """Fetch every selected collection.

        Empty collections are kept as empty lists so the manifest still
        records them with a count of zero.

        Args:
            collections: Collection names, in payload order
            skip_failed: Omit unreadable collections instead of aborting

        Returns:
            Tuple of (payload, failures). ``failures`` is empty unless
            ``skip_failed`` is set.

        Raises:
            PartialFailure: A collection could not be read and ``skip_failed`` is False
        """
        names = unique_preserving_order(collections)
        results = await asyncio.gather(
            *(self._export_collection(name) for name in names), return_exceptions=True
        )

        payload: BackupPayload = {}
        failures: List[CollectionFailure] = []
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"Failed to export collection {name}: {result}")
                failures.append(
                    CollectionFailure(collection=name, operation="read", error=str(result))
                )
                continue
            payload[name] = result

        if failures and not skip_failed:
            raise PartialFailure("export", failures, result=payload)

        logger.info(
            f"Exported {len(payload)} collection(s), "
            f"{sum(len(docs) for docs in payload.values())} document(s)"
        )
        return payload, failures

    async def _export_collection(self, collection: str) -> List[Document]:
        try:
            documents = await self.store.list_documents(collection)
        except TransientStoreError:
            raise
        except Exception as e:
            raise TransientStoreError(collection, "list", e) from e

        logger.debug(f"Exported collection: {collection} ({len(documents)} documents)")
        return [Document(id=doc["id"], fields=doc["fields"]) for doc in documents]

    @staticmethod
    def get_statistics(payload: BackupPayload) -> Dict[str, int]:
        """Document count per collection of an exported payload."""
        return {name: len(documents) for name, documents in payload.items()}
