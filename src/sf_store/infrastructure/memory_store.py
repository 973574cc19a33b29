# src/sf_store/infrastructure/memory_store.py
"""InMemoryKeyValueStore — single-process implementation of KeyValueStoreProtocol.

Values are round-tripped through JSON on every read and write so callers see
the same detached copies (and the same serialization errors) they would get
from the Redis backend. Subscribers are notified inline after each write, in
registration order; a failing subscriber is logged and does not fail the write.
"""
import json
import logging
from collections import defaultdict
from typing import Any

from src.sf_common.id_generator import generate_id
from src.sf_store.domain.repository import (
    Snapshot,
    SnapshotCallback,
    TransactionFn,
    Unsubscribe,
    split_path,
)

logger = logging.getLogger(__name__)


def _copy(value: Any) -> Any:
    return json.loads(json.dumps(value))


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = defaultdict(dict)
        self._subscribers: dict[str, list[SnapshotCallback]] = defaultdict(list)

    async def get(self, path: str) -> Any:
        collection, key = split_path(path)
        if key is None:
            return _copy(self._data[collection]) or None
        value = self._data[collection].get(key)
        return None if value is None else _copy(value)

    async def set(self, path: str, value: Any) -> None:
        collection, key = split_path(path)
        if key is None:
            if value is not None and not isinstance(value, dict):
                raise ValueError("A collection can only be replaced by a mapping")
            self._data[collection] = _copy(value or {})
        elif value is None:
            self._data[collection].pop(key, None)
        else:
            self._data[collection][key] = _copy(value)
        await self._notify(collection)

    async def update(self, path: str, fields: dict[str, Any]) -> None:
        collection, key = split_path(path)
        if key is None:
            children = self._data[collection]
            for child_key, child_value in fields.items():
                if child_value is None:
                    children.pop(child_key, None)
                else:
                    children[child_key] = _copy(child_value)
        else:
            record = self._data[collection].get(key)
            merged = dict(record) if isinstance(record, dict) else {}
            for field, field_value in fields.items():
                if field_value is None:
                    merged.pop(field, None)
                else:
                    merged[field] = _copy(field_value)
            self._data[collection][key] = merged
        await self._notify(collection)

    async def remove(self, path: str) -> None:
        collection, key = split_path(path)
        if key is None:
            self._data.pop(collection, None)
        else:
            self._data[collection].pop(key, None)
        await self._notify(collection)

    async def children(self, collection: str) -> Snapshot:
        return _copy(self._data[collection])

    def push_key(self, collection: str) -> str:
        return generate_id()

    async def transaction(self, path: str, fn: TransactionFn) -> tuple[bool, Any]:
        collection, key = split_path(path)
        if key is None:
            raise ValueError("Transactions operate on a single record path")
        current = self._data[collection].get(key)
        # No await between read and write: atomic within the event loop
        new_value = fn(None if current is None else _copy(current))
        if new_value is None:
            return False, None if current is None else _copy(current)
        self._data[collection][key] = _copy(new_value)
        await self._notify(collection)
        return True, _copy(new_value)

    async def subscribe(self, collection: str, callback: SnapshotCallback) -> Unsubscribe:
        self._subscribers[collection].append(callback)
        await self._deliver(collection, callback)

        async def unsubscribe() -> None:
            if callback in self._subscribers[collection]:
                self._subscribers[collection].remove(callback)

        return unsubscribe

    async def _notify(self, collection: str) -> None:
        for callback in list(self._subscribers[collection]):
            await self._deliver(collection, callback)

    async def _deliver(self, collection: str, callback: SnapshotCallback) -> None:
        try:
            await callback(_copy(self._data[collection]))
        except Exception:
            logger.exception("Subscriber on %s failed", collection)
