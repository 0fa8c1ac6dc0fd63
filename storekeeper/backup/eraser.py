"""Bulk deletion of whole collections or of one identifier namespace."""

import asyncio
from typing import List, Optional, Union

from .._utils import chunked, logger, unique_preserving_order
from ..base import BaseDocumentStore, Document, delete_operation
from ..sequence.namespaces import Namespace, get_namespace
from .models import CollectionFailure, EraseReport


class BulkEraser:
    """Delete documents in batched atomic deletes, one collection at a time.

    A collection that fails to read or delete is recorded in the report;
    the remaining collections are still processed.
    """

    def __init__(self, store: BaseDocumentStore):
        self.store = store

    async def erase(self, collections: List[str],
                    cancel_event: Optional[asyncio.Event] = None) -> EraseReport:
        """Delete every document of the selected collections."""
        report = EraseReport()
        for collection in unique_preserving_order(collections):
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                break
            documents = await self._read(collection, report)
            if documents is None:
                continue
            await self._delete(collection, documents, report, cancel_event)
            if report.cancelled:
                break

        logger.info(
            f"Erase complete: {report.total_deleted} document(s) from "
            f"{len(report.affected_collections)} collection(s), {len(report.failures)} failure(s)"
        )
        return report

    async def erase_namespace(self, namespace: Union[str, Namespace],
                              cancel_event: Optional[asyncio.Event] = None) -> EraseReport:
        """Delete every document whose identifier belongs to ``namespace``.

        A document is removed when one of its identifier fields is claimed by
        the namespace (for prefixed namespaces, any value carrying the prefix).
        Other documents of the member collections are left alone.
        """
        ns = get_namespace(namespace)
        report = EraseReport()
        for collection in ns.collections:
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                break
            documents = await self._read(collection, report)
            if documents is None:
                continue
            sources = [source for source in ns.sources if source.collection == collection]
            matching = [
                doc for doc in documents
                if any(ns.claims(source.read(doc["fields"])) for source in sources)
            ]
            await self._delete(collection, matching, report, cancel_event)
            if report.cancelled:
                break

        logger.info(f"Erased {report.total_deleted} document(s) of namespace {ns.name}")
        return report

    async def _read(self, collection: str, report: EraseReport) -> Optional[List[Document]]:
        try:
            return await self.store.list_documents(collection)
        except Exception as e:
            logger.warning(f"Failed to read collection {collection}: {e}")
            report.failures.append(CollectionFailure(collection=collection, operation="read", error=str(e)))
            return None

    async def _delete(self, collection: str, documents: List[Document], report: EraseReport,
                      cancel_event: Optional[asyncio.Event]) -> None:
        if not documents:
            report.unaffected_collections.append(collection)
            report.deleted_per_collection[collection] = 0
            return

        deleted = 0
        for batch in chunked(documents, self.store.max_batch_size):
            if deleted and cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                break
            try:
                await self.store.batch_commit([delete_operation(collection, doc["id"]) for doc in batch])
            except Exception as e:
                logger.warning(f"Failed to delete from {collection} after {deleted} documents: {e}")
                report.failures.append(CollectionFailure(
                    collection=collection, operation="delete", error=str(e), documents_processed=deleted,
                ))
                break
            deleted += len(batch)
            logger.debug(f"Deleted batch of {len(batch)} from {collection}")

        report.deleted_per_collection[collection] = deleted
        report.total_deleted += deleted
        if deleted:
            report.affected_collections.append(collection)
