# src/sf_gateway/user/persistence.py
"""UserRepository — customer accounts on the key-value store.

There is no index on email or username: lookups scan the collection, which is
what the storefront has always done at its scale.
"""
from typing import Any

from src.sf_gateway.user.models import User
from src.sf_store.domain.repository import KeyValueStoreProtocol

COLLECTION = "users"


def record_to_user(user_id: str, record: dict[str, Any]) -> User:
    return User(
        id=user_id,
        username=record.get("username", ""),
        email=record.get("email", ""),
        password_hash=record.get("passwordHash") or "",
        legacy_password=record.get("password") or "",
        profile_picture=record.get("profilePicture") or "",
        last_seen=record.get("lastSeen") or 0,
        is_active=bool(record.get("isActive", True)),
    )


def user_to_record(user: User) -> dict[str, Any]:
    """Legacy plain-text passwords are never written back."""
    return {
        "username": user.username,
        "email": user.email,
        "passwordHash": user.password_hash,
        "profilePicture": user.profile_picture,
        "lastSeen": user.last_seen,
        "isActive": user.is_active,
    }


class UserRepository:
    def __init__(self, store: KeyValueStoreProtocol) -> None:
        self._store = store

    def new_id(self) -> str:
        return self._store.push_key(COLLECTION)

    async def get_by_id(self, user_id: str) -> User | None:
        record = await self._store.get(f"{COLLECTION}/{user_id}")
        return record_to_user(user_id, record) if record else None

    async def list_all(self) -> list[User]:
        records = await self._store.children(COLLECTION)
        users = [record_to_user(key, record) for key, record in records.items()]
        users.sort(key=lambda u: u.last_seen, reverse=True)
        return users

    async def find_by_email(self, email: str) -> User | None:
        wanted = email.strip().lower()
        for user in await self.list_all():
            if user.email.strip().lower() == wanted:
                return user
        return None

    async def find_by_username(self, username: str) -> User | None:
        for user in await self.list_all():
            if user.username == username:
                return user
        return None

    async def save(self, user: User) -> None:
        await self._store.set(f"{COLLECTION}/{user.id}", user_to_record(user))

    async def update_fields(self, user_id: str, fields: dict[str, Any]) -> None:
        await self._store.update(f"{COLLECTION}/{user_id}", fields)

    async def delete(self, user_id: str) -> None:
        await self._store.remove(f"{COLLECTION}/{user_id}")
