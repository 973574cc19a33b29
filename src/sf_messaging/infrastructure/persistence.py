# src/sf_messaging/infrastructure/persistence.py
"""MessageRepository — message records on the key-value store."""
from typing import Any

from src.sf_messaging.domain.models import Message
from src.sf_store.domain.repository import (
    KeyValueStoreProtocol,
    SnapshotCallback,
    Unsubscribe,
)

COLLECTION = "messages"


def record_to_message(message_id: str, record: dict[str, Any]) -> Message:
    return Message(
        id=message_id,
        user_id=record.get("userId", ""),
        title=record.get("title", ""),
        content=record.get("content", ""),
        timestamp=record.get("timestamp") or 0,
        is_read=bool(record.get("isRead")),
        from_admin=bool(record.get("fromAdmin", True)),
    )


def message_to_record(message: Message) -> dict[str, Any]:
    return {
        "id": message.id,
        "userId": message.user_id,
        "title": message.title,
        "content": message.content,
        "timestamp": message.timestamp,
        "isRead": message.is_read,
        "fromAdmin": message.from_admin,
    }


def snapshot_to_messages(snapshot: dict[str, Any]) -> list[Message]:
    """Messages newest first."""
    messages = [record_to_message(key, record) for key, record in snapshot.items()]
    messages.sort(key=lambda m: m.timestamp, reverse=True)
    return messages


class MessageRepository:
    def __init__(self, store: KeyValueStoreProtocol) -> None:
        self._store = store

    def new_id(self) -> str:
        return self._store.push_key(COLLECTION)

    async def save(self, message: Message) -> None:
        await self._store.set(f"{COLLECTION}/{message.id}", message_to_record(message))

    async def get_by_id(self, message_id: str) -> Message | None:
        record = await self._store.get(f"{COLLECTION}/{message_id}")
        return record_to_message(message_id, record) if record else None

    async def list_all(self) -> list[Message]:
        return snapshot_to_messages(await self._store.children(COLLECTION))

    async def mark_read(self, message_id: str) -> None:
        await self._store.update(f"{COLLECTION}/{message_id}", {"isRead": True})

    async def delete(self, message_id: str) -> None:
        await self._store.remove(f"{COLLECTION}/{message_id}")

    async def subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        return await self._store.subscribe(COLLECTION, callback)
