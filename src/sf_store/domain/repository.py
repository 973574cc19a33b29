# src/sf_store/domain/repository.py
"""KeyValueStore Protocol — the only persistence contract the core depends on.

The store is a single logical namespace of collections (``orders``,
``products``, ``messages``, ``users``, ``settings``), each a flat mapping of
generated key -> JSON record. Paths are ``collection`` or ``collection/key``.
Writes are last-writer-wins per path; ``transaction`` is the one atomic
read-modify-write primitive.

Unit tests inject InMemoryKeyValueStore; production uses RedisKeyValueStore.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

# Full collection snapshot: key -> record
Snapshot = dict[str, Any]
SnapshotCallback = Callable[[Snapshot], Awaitable[None]]
Unsubscribe = Callable[[], Awaitable[None]]
# Receives the current value (None when absent); returns the new value or None to abort
TransactionFn = Callable[[Any], Any]


class KeyValueStoreProtocol(Protocol):
    async def get(self, path: str) -> Any: ...

    async def set(self, path: str, value: Any) -> None: ...

    async def update(self, path: str, fields: dict[str, Any]) -> None: ...

    async def remove(self, path: str) -> None: ...

    async def children(self, collection: str) -> Snapshot: ...

    def push_key(self, collection: str) -> str: ...

    async def transaction(self, path: str, fn: TransactionFn) -> tuple[bool, Any]: ...

    async def subscribe(self, collection: str, callback: SnapshotCallback) -> Unsubscribe: ...


def split_path(path: str) -> tuple[str, str | None]:
    """Split ``collection/key`` into its parts; a bare collection has key None."""
    parts = path.strip("/").split("/")
    if not parts[0] or len(parts) > 2 or (len(parts) == 2 and not parts[1]):
        raise ValueError(f"Invalid store path: {path!r}")
    if len(parts) == 1:
        return parts[0], None
    return parts[0], parts[1]
