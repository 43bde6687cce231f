"""
Document storage for issued API keys

Keys are stored one document per key, with the key string as the document
id. Every lookup is a direct get by key string.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from redis import asyncio as aioredis
from redis.exceptions import WatchError

from .models import IssuedKey, UsageRecord

logger = logging.getLogger(__name__)


class KeyStore(ABC):
    """Storage interface for issued keys and their usage log"""

    @abstractmethod
    async def get(self, key: str) -> Optional[IssuedKey]:
        """Fetch a key record by key string"""

    @abstractmethod
    async def create(self, issued: IssuedKey) -> bool:
        """Store a new record; False if the key string already exists"""

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[IssuedKey]:
        """Records owned by ``user_id``, newest first"""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a record and its usage log; False if it did not exist"""

    @abstractmethod
    async def delete_for_user(self, user_id: str) -> int:
        """Remove every record owned by ``user_id`` with its usage log; returns the count"""

    @abstractmethod
    async def record_usage(self, key: str, endpoint: str) -> Optional[UsageRecord]:
        """
        Bump request count and last-used time and append a usage record

        Returns None when the key does not exist.
        """

    @abstractmethod
    async def usage_for_key(self, key: str, limit: int = 100) -> List[UsageRecord]:
        """Most recent usage records for a key, newest first"""

    async def close(self) -> None:
        return None


class InMemoryKeyStore(KeyStore):
    """Process-local store for development and tests"""

    def __init__(self, usage_log_max_entries: int = 10000):
        self._keys: Dict[str, IssuedKey] = {}
        self._usage: Dict[str, List[UsageRecord]] = {}
        self.usage_log_max_entries = usage_log_max_entries

    async def get(self, key: str) -> Optional[IssuedKey]:
        issued = self._keys.get(key)
        return issued.model_copy() if issued else None

    async def create(self, issued: IssuedKey) -> bool:
        if issued.key in self._keys:
            return False
        self._keys[issued.key] = issued.model_copy()
        self._usage[issued.key] = []
        return True

    async def list_for_user(self, user_id: str) -> List[IssuedKey]:
        owned = [k.model_copy() for k in self._keys.values() if k.user_id == user_id]
        return sorted(owned, key=lambda k: k.created, reverse=True)

    async def delete(self, key: str) -> bool:
        self._usage.pop(key, None)
        return self._keys.pop(key, None) is not None

    async def delete_for_user(self, user_id: str) -> int:
        owned = [k for k, issued in self._keys.items() if issued.user_id == user_id]
        for key in owned:
            await self.delete(key)
        return len(owned)

    async def record_usage(self, key: str, endpoint: str) -> Optional[UsageRecord]:
        issued = self._keys.get(key)
        if issued is None:
            return None

        record = UsageRecord(api_key_id=key, user_id=issued.user_id, endpoint=endpoint)
        issued.request_count += 1
        issued.last_used = record.timestamp

        log = self._usage.setdefault(key, [])
        log.insert(0, record)
        del log[self.usage_log_max_entries:]
        return record

    async def usage_for_key(self, key: str, limit: int = 100) -> List[UsageRecord]:
        return list(self._usage.get(key, [])[:limit])


class RedisKeyStore(KeyStore):
    """
    Redis-backed document store

    Layout:
        alexzo:api_keys:{key}        JSON document of the key record
        alexzo:user_api_keys:{uid}   sorted set of the user's keys by creation time
        alexzo:api_usage:{key}       capped list of usage records, newest first
    """

    KEY_PREFIX = "alexzo:api_keys:"
    USER_INDEX_PREFIX = "alexzo:user_api_keys:"
    USAGE_PREFIX = "alexzo:api_usage:"
    MAX_WATCH_RETRIES = 5

    def __init__(self, redis_client: aioredis.Redis, usage_log_max_entries: int = 10000):
        self.redis = redis_client
        self.usage_log_max_entries = usage_log_max_entries

    @classmethod
    def from_url(cls, url: str, usage_log_max_entries: int = 10000) -> "RedisKeyStore":
        client = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, usage_log_max_entries)

    def _doc_key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    def _user_index(self, user_id: str) -> str:
        return f"{self.USER_INDEX_PREFIX}{user_id}"

    def _usage_key(self, key: str) -> str:
        return f"{self.USAGE_PREFIX}{key}"

    async def get(self, key: str) -> Optional[IssuedKey]:
        raw = await self.redis.get(self._doc_key(key))
        if raw is None:
            return None
        return IssuedKey.from_document(json.loads(raw))

    async def create(self, issued: IssuedKey) -> bool:
        document = json.dumps(issued.to_document())
        created = await self.redis.set(self._doc_key(issued.key), document, nx=True)
        if not created:
            return False
        await self.redis.zadd(
            self._user_index(issued.user_id),
            {issued.key: issued.created.timestamp()}
        )
        return True

    async def list_for_user(self, user_id: str) -> List[IssuedKey]:
        keys = await self.redis.zrevrange(self._user_index(user_id), 0, -1)
        if not keys:
            return []

        raw_docs = await self.redis.mget([self._doc_key(k) for k in keys])
        issued = []
        for key, raw in zip(keys, raw_docs):
            if raw is None:
                # Index entry without a document; drop it
                await self.redis.zrem(self._user_index(user_id), key)
                continue
            issued.append(IssuedKey.from_document(json.loads(raw)))
        return issued

    async def delete(self, key: str) -> bool:
        issued = await self.get(key)
        if issued is None:
            return False

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(self._doc_key(key))
            pipe.zrem(self._user_index(issued.user_id), key)
            pipe.delete(self._usage_key(key))
            await pipe.execute()
        return True

    async def delete_for_user(self, user_id: str) -> int:
        index = self._user_index(user_id)
        keys = await self.redis.zrange(index, 0, -1)

        async with self.redis.pipeline(transaction=True) as pipe:
            for key in keys:
                pipe.delete(self._doc_key(key))
                pipe.delete(self._usage_key(key))
            pipe.delete(index)
            results = await pipe.execute()

        # Results alternate document and usage deletes, then the index
        return sum(results[0:-1:2])

    async def record_usage(self, key: str, endpoint: str) -> Optional[UsageRecord]:
        doc_key = self._doc_key(key)

        for _ in range(self.MAX_WATCH_RETRIES):
            async with self.redis.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(doc_key)
                    raw = await pipe.get(doc_key)
                    if raw is None:
                        return None

                    issued = IssuedKey.from_document(json.loads(raw))
                    record = UsageRecord(api_key_id=key, user_id=issued.user_id, endpoint=endpoint)
                    issued.request_count += 1
                    issued.last_used = record.timestamp

                    pipe.multi()
                    pipe.set(doc_key, json.dumps(issued.to_document()))
                    pipe.lpush(self._usage_key(key), json.dumps(record.to_document()))
                    pipe.ltrim(self._usage_key(key), 0, self.usage_log_max_entries - 1)
                    await pipe.execute()
                    return record
                except WatchError:
                    logger.debug("Concurrent update on %s, retrying usage write", doc_key[:28])
                    continue

        raise RuntimeError("Could not record usage after repeated write conflicts")

    async def usage_for_key(self, key: str, limit: int = 100) -> List[UsageRecord]:
        raw_records = await self.redis.lrange(self._usage_key(key), 0, limit - 1)
        return [UsageRecord.model_validate(json.loads(raw)) for raw in raw_records]

    async def close(self) -> None:
        await self.redis.aclose()
