# src/sf_store/infrastructure/redis_store.py
"""RedisKeyValueStore — shared real-time store on Redis.

Layout:
  - one hash per collection:        "{prefix}:{collection}"  field=key  value=JSON
  - one change channel per collection: "{prefix}:changes:{collection}"  payload=key

Every write publishes on the collection's channel inside the same MULTI block,
so a subscriber that reloads after a notification always sees the write.
Transactions use WATCH on the collection hash (optimistic, retried on conflict).
"""
import asyncio
import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError

from src.sf_common.errors import StoreUnavailableError
from src.sf_common.id_generator import generate_id
from src.sf_store.domain.repository import (
    Snapshot,
    SnapshotCallback,
    TransactionFn,
    Unsubscribe,
    split_path,
)

logger = logging.getLogger(__name__)

_MAX_TRANSACTION_ATTEMPTS = 25


@contextmanager
def _store_errors() -> Iterator[None]:
    """Map transport failures to StoreUnavailableError."""
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError) as exc:
        logger.error("Redis store unavailable: %s", exc)
        raise StoreUnavailableError(str(exc)) from exc


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


class RedisKeyValueStore:
    def __init__(self, redis: aioredis.Redis, prefix: str = "sf") -> None:
        self._redis = redis
        self._prefix = prefix

    def _hash_key(self, collection: str) -> str:
        return f"{self._prefix}:{collection}"

    def _channel(self, collection: str) -> str:
        return f"{self._prefix}:changes:{collection}"

    async def get(self, path: str) -> Any:
        collection, key = split_path(path)
        if key is None:
            snapshot = await self.children(collection)
            return snapshot or None
        with _store_errors():
            raw = await self._redis.hget(self._hash_key(collection), key)
        return None if raw is None else json.loads(raw)

    async def set(self, path: str, value: Any) -> None:
        collection, key = split_path(path)
        hash_key = self._hash_key(collection)
        with _store_errors():
            async with self._redis.pipeline(transaction=True) as pipe:
                if key is None:
                    if value is not None and not isinstance(value, dict):
                        raise ValueError("A collection can only be replaced by a mapping")
                    pipe.delete(hash_key)
                    if value:
                        pipe.hset(hash_key, mapping={k: _dumps(v) for k, v in value.items()})
                elif value is None:
                    pipe.hdel(hash_key, key)
                else:
                    pipe.hset(hash_key, key, _dumps(value))
                pipe.publish(self._channel(collection), key or "*")
                await pipe.execute()

    async def update(self, path: str, fields: dict[str, Any]) -> None:
        collection, key = split_path(path)
        if key is not None:
            def merge(current: Any) -> dict[str, Any]:
                merged = dict(current) if isinstance(current, dict) else {}
                for field, field_value in fields.items():
                    if field_value is None:
                        merged.pop(field, None)
                    else:
                        merged[field] = field_value
                return merged

            await self.transaction(path, merge)
            return

        hash_key = self._hash_key(collection)
        removed = [k for k, v in fields.items() if v is None]
        written = {k: _dumps(v) for k, v in fields.items() if v is not None}
        with _store_errors():
            async with self._redis.pipeline(transaction=True) as pipe:
                if removed:
                    pipe.hdel(hash_key, *removed)
                if written:
                    pipe.hset(hash_key, mapping=written)
                pipe.publish(self._channel(collection), "*")
                await pipe.execute()

    async def remove(self, path: str) -> None:
        await self.set(path, None)

    async def children(self, collection: str) -> Snapshot:
        with _store_errors():
            raw = await self._redis.hgetall(self._hash_key(collection))
        return {k: json.loads(v) for k, v in raw.items()}

    def push_key(self, collection: str) -> str:
        return generate_id()

    async def transaction(self, path: str, fn: TransactionFn) -> tuple[bool, Any]:
        collection, key = split_path(path)
        if key is None:
            raise ValueError("Transactions operate on a single record path")
        hash_key = self._hash_key(collection)

        with _store_errors():
            async with self._redis.pipeline(transaction=True) as pipe:
                for attempt in range(1, _MAX_TRANSACTION_ATTEMPTS + 1):
                    try:
                        await pipe.watch(hash_key)
                        raw = await pipe.hget(hash_key, key)
                        current = None if raw is None else json.loads(raw)
                        new_value = fn(current)
                        if new_value is None:
                            await pipe.unwatch()
                            return False, current
                        pipe.multi()
                        pipe.hset(hash_key, key, _dumps(new_value))
                        pipe.publish(self._channel(collection), key)
                        await pipe.execute()
                        return True, new_value
                    except WatchError:
                        logger.debug("Transaction conflict on %s (attempt %d)", path, attempt)
                        continue
        raise StoreUnavailableError(f"Transaction on {path} did not converge")

    async def subscribe(self, collection: str, callback: SnapshotCallback) -> Unsubscribe:
        pubsub = self._redis.pubsub()
        channel = self._channel(collection)
        with _store_errors():
            await pubsub.subscribe(channel)
        task = asyncio.create_task(self._listen(collection, pubsub, callback))

        async def unsubscribe() -> None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()

        return unsubscribe

    async def _listen(
        self, collection: str, pubsub: Any, callback: SnapshotCallback
    ) -> None:
        try:
            await self._deliver(collection, callback)
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                await self._deliver(collection, callback)
        except asyncio.CancelledError:
            raise
        except Exception:
            # No error channel on feeds: subscriber simply stops receiving updates
            logger.exception("Subscription feed on %s stopped", collection)

    async def _deliver(self, collection: str, callback: SnapshotCallback) -> None:
        snapshot = await self.children(collection)
        try:
            await callback(snapshot)
        except Exception:
            logger.exception("Subscriber on %s failed", collection)
