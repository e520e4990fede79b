# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Redis Principal Store.

Each document is one JSON string at ``<database>:<collection>:<id>``, so
an upsert is a single atomic ``SET``. A client is opened per operation and
closed before the operation returns.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from keyservice.config import StoreLocation
from keyservice.constants import PrincipalType
from keyservice.exceptions import StoreError
from keyservice.identity.models import BundleRecord, PrincipalRecord

from .provider import AbstractPrincipalStore

logger = logging.getLogger(__name__)


class RedisPrincipalStore(AbstractPrincipalStore):
    """
    Redis principal store.

    Args:
        redis_url: Redis connection URL.
        client_factory: Builds a fresh client per operation. Defaults to
            ``redis.asyncio.Redis.from_url(redis_url)``.
        locations: Partition per principal type.
        clock: Current unix time source.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        client_factory: Optional[Callable[[], aioredis.Redis]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._redis_url = redis_url
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> aioredis.Redis:
        return aioredis.Redis.from_url(self._redis_url, decode_responses=True)

    @staticmethod
    def _key(location: StoreLocation, principal_id: str) -> str:
        return f"{location.database}:{location.collection}:{principal_id}"

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aioredis.Redis]:
        """Open a client for one operation; always close it."""
        client = self._client_factory()
        try:
            yield client
        except (RedisError, json.JSONDecodeError) as exc:
            logger.error("Redis operation failed: %s", exc)
            raise StoreError(f"Redis operation failed: {exc}") from exc
        finally:
            await client.aclose()

    async def health_check(self) -> bool:
        try:
            async with self._connection() as client:
                return bool(await client.ping())
        except StoreError:
            return False

    async def _load(self, location: StoreLocation, principal_id: str) -> Optional[dict[str, Any]]:
        async with self._connection() as client:
            raw = await client.get(self._key(location, principal_id))
            return None if raw is None else json.loads(raw)

    async def _store(self, location: StoreLocation, principal_id: str, doc: dict[str, Any]) -> None:
        async with self._connection() as client:
            await client.set(self._key(location, principal_id), json.dumps(doc))

    async def _put_bundle(self, location: StoreLocation, record: BundleRecord) -> None:
        await self._store(location, record.user_id, record.to_document())

    async def _get_bundle(self, location: StoreLocation, user_id: str) -> Optional[BundleRecord]:
        doc = await self._load(location, user_id)
        return None if doc is None else BundleRecord.from_document(doc)

    async def _put_record(self, location: StoreLocation, record: PrincipalRecord) -> None:
        await self._store(location, record.principal_id, record.to_document())

    async def _get_record(
        self,
        location: StoreLocation,
        principal_type: PrincipalType,
        principal_id: str,
    ) -> Optional[PrincipalRecord]:
        doc = await self._load(location, principal_id)
        return None if doc is None else PrincipalRecord.from_document(principal_type, doc)

    async def _count(self, location: StoreLocation, principal_id: str, key: str, secret: str) -> int:
        doc = await self._load(location, principal_id)
        if doc is None:
            return 0
        matched = (
            doc.get("principal_id") == principal_id
            and doc.get("key") == key
            and doc.get("secret") == secret
        )
        return int(matched)
