# src/sf_store/application/service.py
"""Process-wide store handle, built once from settings and injected everywhere else.

STORE_BACKEND=redis opens one connection pool for reads, writes and the
change feed; STORE_BACKEND=memory keeps everything in this process.
"""
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings
from src.sf_common.errors import StoreUnavailableError
from src.sf_store.domain.repository import KeyValueStoreProtocol
from src.sf_store.infrastructure.memory_store import InMemoryKeyValueStore
from src.sf_store.infrastructure.redis_store import RedisKeyValueStore

logger = logging.getLogger(__name__)

_store: KeyValueStoreProtocol | None = None
_redis: aioredis.Redis | None = None


async def _connect_redis() -> aioredis.Redis:
    client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except RedisError as exc:
        await client.aclose()
        logger.error("Redis at %s unreachable: %s", settings.REDIS_URL, exc)
        raise StoreUnavailableError(f"Redis unreachable: {exc}") from exc
    return client


async def get_store() -> KeyValueStoreProtocol:
    global _store, _redis  # noqa: PLW0603
    if _store is None:
        if settings.STORE_BACKEND == "memory":
            _store = InMemoryKeyValueStore()
        else:
            _redis = await _connect_redis()
            _store = RedisKeyValueStore(_redis, prefix=settings.STORE_KEY_PREFIX)
        logger.info("Store backend ready: %s", settings.STORE_BACKEND)
    return _store


def set_store(store: KeyValueStoreProtocol | None) -> None:
    """Replace the process-wide store (tests, embedding hosts)."""
    global _store  # noqa: PLW0603
    _store = store


async def close_store() -> None:
    global _store, _redis  # noqa: PLW0603
    if _redis is not None:
        await _redis.aclose()
        _redis = None
    _store = None
