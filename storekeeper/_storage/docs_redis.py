"""Redis-backed document store for production deployments."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import redis.asyncio as aioredis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.retry import Retry
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..base import BaseDocumentStore, BatchOperation, Document
from ..exceptions import TransientStoreError
from .._utils import logger

_transient_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type((RedisConnectionError, TimeoutError)),
    reraise=True,
)


@dataclass
class RedisDocumentStore(BaseDocumentStore):
    """Documents are JSON strings under ``<prefix>:doc:<collection>:<id>``.

    A set at ``<prefix>:ids:<collection>`` indexes the ids of each collection.
    Batches run as a MULTI/EXEC transaction so they apply atomically.
    """

    _redis_client: Optional[Any] = field(init=False, default=None)
    _connection_pool: Optional[Any] = field(init=False, default=None)
    _initialized: bool = field(init=False, default=False)

    def __post_init__(self):
        self.max_batch_size = self.global_config.get("max_batch_size", self.max_batch_size)
        self.redis_url = self.global_config.get("redis_url", "redis://localhost:6379")
        self.redis_password = self.global_config.get("redis_password", None)
        self.max_connections = self.global_config.get("redis_max_connections", 50)
        self.socket_timeout = self.global_config.get("redis_socket_timeout", 5.0)
        self._prefix = self.global_config.get("redis_key_prefix", "storekeeper")

    async def _ensure_initialized(self):
        """Ensure Redis connection is initialized."""
        if self._initialized:
            return

        retry_policy = Retry(
            ExponentialBackoff(cap=10, base=1),
            retries=3,
            supported_errors=(RedisConnectionError, TimeoutError, ConnectionError)
        )
        self._connection_pool = aioredis.ConnectionPool.from_url(
            self.redis_url,
            password=self.redis_password,
            max_connections=self.max_connections,
            socket_timeout=self.socket_timeout,
            decode_responses=False,
            retry=retry_policy,
        )
        self._redis_client = aioredis.Redis(connection_pool=self._connection_pool)

        try:
            await self._redis_client.ping()
            logger.info(f"Connected to Redis document store at {self.redis_url}")
        except RedisError as e:
            logger.error(f"Redis connection failed: {e}")
            raise

        self._initialized = True

    def _doc_key(self, collection: str, doc_id: str) -> str:
        return f"{self._prefix}:doc:{collection}:{doc_id}"

    def _index_key(self, collection: str) -> str:
        return f"{self._prefix}:ids:{collection}"

    @staticmethod
    def _serialize(fields: Dict[str, Any]) -> bytes:
        return json.dumps(fields, default=str).encode("utf-8")

    @staticmethod
    def _deserialize(data: Optional[bytes]) -> Optional[Dict[str, Any]]:
        if data is None:
            return None
        return json.loads(data.decode("utf-8"))

    @_transient_retry
    async def _list_raw(self, collection: str) -> List[Document]:
        await self._ensure_initialized()
        raw_ids = await self._redis_client.smembers(self._index_key(collection))
        ids = sorted(i.decode("utf-8") if isinstance(i, bytes) else i for i in raw_ids)
        if not ids:
            return []

        async with self._redis_client.pipeline(transaction=False) as pipe:
            for doc_id in ids:
                pipe.get(self._doc_key(collection, doc_id))
            values = await pipe.execute()

        documents = []
        for doc_id, value in zip(ids, values):
            fields = self._deserialize(value)
            if fields is None:
                # Index entry without a document body, left by an external writer
                continue
            documents.append(Document(id=doc_id, fields=fields))
        return documents

    async def list_documents(self, collection: str) -> List[Document]:
        try:
            return await self._list_raw(collection)
        except (RedisError, TimeoutError) as e:
            raise TransientStoreError(collection, "list", e) from e

    @_transient_retry
    async def _get_raw(self, collection: str, doc_id: str) -> Optional[bytes]:
        await self._ensure_initialized()
        return await self._redis_client.get(self._doc_key(collection, doc_id))

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self._deserialize(await self._get_raw(collection, doc_id))
        except (RedisError, TimeoutError) as e:
            raise TransientStoreError(collection, "get", e) from e

    async def set(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        await self.batch_commit([BatchOperation(op="set", collection=collection, id=doc_id, fields=fields)])

    async def delete(self, collection: str, doc_id: str) -> None:
        await self.batch_commit([BatchOperation(op="delete", collection=collection, id=doc_id)])

    @_transient_retry
    async def _commit_raw(self, operations: List[BatchOperation]) -> None:
        await self._ensure_initialized()
        async with self._redis_client.pipeline(transaction=True) as pipe:
            for operation in operations:
                collection, doc_id = operation["collection"], operation["id"]
                if operation["op"] == "set":
                    pipe.set(self._doc_key(collection, doc_id), self._serialize(operation.get("fields") or {}))
                    pipe.sadd(self._index_key(collection), doc_id)
                else:
                    pipe.delete(self._doc_key(collection, doc_id))
                    pipe.srem(self._index_key(collection), doc_id)
            await pipe.execute()

    async def batch_commit(self, operations: List[BatchOperation]) -> None:
        if not operations:
            return
        self._validate_batch(operations)
        collections = sorted({operation["collection"] for operation in operations})
        try:
            await self._commit_raw(operations)
        except (RedisError, TimeoutError) as e:
            raise TransientStoreError(",".join(collections), "batch_commit", e) from e
        logger.debug(f"Committed batch of {len(operations)} operations to Redis")

    @_transient_retry
    async def _count_raw(self, collection: str) -> int:
        await self._ensure_initialized()
        return await self._redis_client.scard(self._index_key(collection))

    async def count(self, collection: str) -> int:
        try:
            return int(await self._count_raw(collection))
        except (RedisError, TimeoutError) as e:
            raise TransientStoreError(collection, "count", e) from e

    async def check_health(self) -> bool:
        try:
            await self._ensure_initialized()
            return bool(await self._redis_client.ping())
        except (RedisError, TimeoutError):
            return False

    async def close(self) -> None:
        """Release Redis connections."""
        if self._redis_client:
            await self._redis_client.aclose()
        if self._connection_pool:
            await self._connection_pool.disconnect()
        self._initialized = False
