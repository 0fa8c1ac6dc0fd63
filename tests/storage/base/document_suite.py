"""Base test suite for document store implementations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import pytest

from storekeeper.base import delete_operation, set_operation


@dataclass
class DocumentStoreContract:
    """Contract that all document stores must fulfill."""

    max_batch_size: int = 500
    supports_health_check: bool = True


class BaseDocumentStoreTestSuite(ABC):
    """Abstract test suite all document store implementations must pass."""

    @pytest.fixture
    @abstractmethod
    async def storage(self) -> Any:
        """Provide storage instance for testing."""
        pass

    @pytest.fixture
    @abstractmethod
    def contract(self) -> DocumentStoreContract:
        """Define storage capabilities contract."""
        pass

    @pytest.mark.asyncio
    async def test_basic_operations(self, storage):
        """Test single-document get/set/delete."""
        await storage.set("customers", "c1", {"name": "Ada", "address": {"city": "Leeds"}})

        result = await storage.get("customers", "c1")
        assert result == {"name": "Ada", "address": {"city": "Leeds"}}

        assert await storage.get("customers", "missing") is None

        await storage.set("customers", "c1", {"name": "Ada Lovelace"})
        assert await storage.get("customers", "c1") == {"name": "Ada Lovelace"}

        await storage.delete("customers", "c1")
        assert await storage.get("customers", "c1") is None

    @pytest.mark.asyncio
    async def test_list_documents(self, storage):
        """Listing returns id + fields for every document of one collection only."""
        await storage.set("orders", "o1", {"total": 10})
        await storage.set("orders", "o2", {"total": 20})
        await storage.set("leads", "l1", {"name": "lead"})

        documents = await storage.list_documents("orders")
        assert sorted(doc["id"] for doc in documents) == ["o1", "o2"]
        assert {doc["id"]: doc["fields"]["total"] for doc in documents} == {"o1": 10, "o2": 20}

        assert await storage.list_documents("never-written") == []

    @pytest.mark.asyncio
    async def test_batch_commit(self, storage):
        """Mixed set/delete batches apply across collections."""
        await storage.set("orders", "old", {"total": 1})

        await storage.batch_commit([
            set_operation("orders", "n1", {"total": 5}),
            set_operation("leads", "l1", {"name": "x"}),
            delete_operation("orders", "old"),
        ])

        assert await storage.get("orders", "n1") == {"total": 5}
        assert await storage.get("leads", "l1") == {"name": "x"}
        assert await storage.get("orders", "old") is None

    @pytest.mark.asyncio
    async def test_batch_limit(self, storage, contract):
        """Oversized batches are rejected as a whole, nothing is written."""
        operations = [
            set_operation("bulk", f"d{i}", {"i": i}) for i in range(contract.max_batch_size + 1)
        ]
        with pytest.raises(ValueError):
            await storage.batch_commit(operations)
        assert await storage.count("bulk") == 0

    @pytest.mark.asyncio
    async def test_full_batch_accepted(self, storage, contract):
        operations = [set_operation("bulk", f"d{i}", {"i": i}) for i in range(contract.max_batch_size)]
        await storage.batch_commit(operations)
        assert await storage.count("bulk") == contract.max_batch_size

    @pytest.mark.asyncio
    async def test_invalid_operation_rejected(self, storage):
        with pytest.raises(ValueError):
            await storage.batch_commit([{"op": "upsert", "collection": "orders", "id": "x"}])
        with pytest.raises(ValueError):
            await storage.batch_commit([{"op": "set", "collection": "orders", "fields": {}}])

    @pytest.mark.asyncio
    async def test_count(self, storage):
        for i in range(3):
            await storage.set("tags", f"t{i}", {"label": str(i)})
        assert await storage.count("tags") == 3
        assert await storage.count("empty") == 0

    @pytest.mark.asyncio
    async def test_health(self, storage, contract):
        if not contract.supports_health_check:
            pytest.skip("Storage doesn't support health checks")
        assert await storage.check_health() is True
