"""Allocation of unique identifiers over a shared, uncoordinated namespace."""

import asyncio
from collections import Counter
from typing import Awaitable, Callable, Optional, Set, Union

from ..base import BaseDocumentStore
from ..config import SequenceConfig
from ..exceptions import AllocationError
from .._utils import logger
from .models import Identifier, SequenceGap, SequenceStatus
from .namespaces import Namespace, get_namespace

NamespaceRef = Union[str, Namespace]


class SequenceAllocator:
    """Compute the next safe identifier for a namespace.

    There is no central counter: the allocated values are derived by scanning
    every member collection. A candidate is re-validated against a fresh read
    before it is returned, which narrows but does not close the window in which
    a concurrent writer can take the same value. Store read errors propagate as
    ``TransientStoreError``; they are never treated as "value already used".
    """

    def __init__(self, store: BaseDocumentStore, config: Optional[SequenceConfig] = None):
        self.store = store
        self.config = config or SequenceConfig()

    async def _scan(self, namespace: Namespace) -> Counter:
        """Count how many live documents carry each value of the namespace."""
        results = await asyncio.gather(
            *(self.store.list_documents(source.collection) for source in namespace.sources)
        )

        counts: Counter = Counter()
        for source, documents in zip(namespace.sources, results):
            for document in documents:
                value = namespace.extract(source.read(document["fields"]))
                if value is not None:
                    counts[value] += 1
        return counts

    async def used_values(self, namespace: NamespaceRef) -> Set[int]:
        return set(await self._scan(get_namespace(namespace)))

    async def next(self, namespace: NamespaceRef) -> Identifier:
        """Return the next identifier that passes live validation."""
        ns = get_namespace(namespace)
        used = set(await self._scan(ns))

        if not used:
            candidate = ns.start
        else:
            candidate = max(used | {ns.floor}) + 1

        for attempt in range(1, self.config.max_validation_rounds + 1):
            while candidate in used:
                candidate += 1
            if not ns.fits(candidate):
                raise AllocationError(
                    f"Namespace {ns.name} is exhausted: {ns.format(candidate)} exceeds {ns.width} digits"
                )

            live = set(await self._scan(ns))
            if candidate not in live:
                identifier = ns.identifier(candidate)
                logger.info(f"Allocated {identifier.formatted} in namespace {ns.name}")
                return identifier

            logger.warning(
                f"Candidate {ns.format(candidate)} was taken by a concurrent writer "
                f"(attempt {attempt}/{self.config.max_validation_rounds})"
            )
            used |= live
            used.add(candidate)

        raise AllocationError(
            f"No identifier in namespace {ns.name} passed validation after "
            f"{self.config.max_validation_rounds} rounds"
        )

    async def is_available(self, candidate: Union[int, str, Identifier], namespace: NamespaceRef) -> bool:
        """True iff no live document in the namespace carries ``candidate``'s value.

        Raises:
            ValueError: If the candidate does not have the namespace's shape.
        """
        ns = get_namespace(namespace)
        value = ns.normalize(candidate)
        used = await self._scan(ns)
        return value not in used

    async def allocate(
        self,
        namespace: NamespaceRef,
        persist: Callable[[Identifier], Awaitable[None]],
        max_attempts: int = 5,
    ) -> Identifier:
        """Allocate an identifier and hand it to ``persist``.

        The value is re-checked immediately before ``persist`` runs; when the
        re-check fails a fresh ``next()`` is requested.
        """
        ns = get_namespace(namespace)
        for attempt in range(1, max_attempts + 1):
            identifier = await self.next(ns)
            if await self.is_available(identifier, ns):
                await persist(identifier)
                return identifier
            logger.warning(f"{identifier.formatted} lost before commit (attempt {attempt}/{max_attempts})")
        raise AllocationError(f"Could not commit an identifier in namespace {ns.name} after {max_attempts} attempts")

    async def status(self, namespace: NamespaceRef) -> SequenceStatus:
        """Used values, gaps between them and duplicated values of a namespace."""
        ns = get_namespace(namespace)
        counts = await self._scan(ns)
        used = sorted(counts)

        gaps = [
            SequenceGap(start=current + 1, end=following - 1)
            for current, following in zip(used, used[1:])
            if following - current > 1
        ]
        next_value = max(used[-1], ns.floor) + 1 if used else ns.start

        return SequenceStatus(
            namespace=ns.name,
            used_numbers=used,
            gaps=gaps,
            duplicates=sorted(value for value, count in counts.items() if count > 1),
            next_available=ns.format(next_value) if ns.fits(next_value) else None,
            total_used=len(used),
        )
