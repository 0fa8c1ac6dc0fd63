"""Per-collection document counts for the data management screen."""

import asyncio
from typing import Dict, List, Optional, Union

from .._utils import logger
from ..base import BaseDocumentStore
from .collections import collection_names

CollectionCount = Union[int, str]


class CollectionStatsScanner:
    """Count documents per collection; a failing collection reports ``"error"``."""

    def __init__(self, store: BaseDocumentStore):
        self.store = store

    async def scan(self, names: Optional[List[str]] = None) -> Dict[str, CollectionCount]:
        names = list(names) if names is not None else collection_names()
        counts = await asyncio.gather(*(self._count(name) for name in names))
        return dict(zip(names, counts))

    async def _count(self, name: str) -> CollectionCount:
        try:
            return await self.store.count(name)
        except Exception as e:
            logger.warning(f"Error counting collection {name}: {e}")
            return "error"
