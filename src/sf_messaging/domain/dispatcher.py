"""NotificationDispatcher — appends Message records addressed to a user or to ALL.

Delivery means "available on the recipient's next read": there is no
acknowledgement and no retry beyond the store's own durability. Read state is
tracked per concrete user; broadcasts never count as unread.
"""
import logging
from collections.abc import Callable

from src.sf_common.datetime_utils import now_ms
from src.sf_common.errors import MessageNotFoundError
from src.sf_messaging.domain.models import BROADCAST, Message
from src.sf_messaging.infrastructure.persistence import MessageRepository

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(
        self, messages: MessageRepository, clock: Callable[[], int] = now_ms
    ) -> None:
        self._messages = messages
        self._clock = clock

    async def send(
        self, user_id: str, title: str, content: str, from_admin: bool = True
    ) -> Message:
        message = Message(
            id=self._messages.new_id(),
            user_id=user_id,
            title=title,
            content=content,
            timestamp=self._clock(),
            is_read=False,
            from_admin=from_admin,
        )
        await self._messages.save(message)
        logger.info("Message %s sent to %s: %s", message.id, user_id, title)
        return message

    async def mark_read(self, message_id: str, user_id: str | None = None) -> Message:
        """Mark a direct message read. Broadcasts are left untouched."""
        message = await self._messages.get_by_id(message_id)
        if message is None or (
            user_id is not None and not message.is_broadcast and message.user_id != user_id
        ):
            raise MessageNotFoundError(message_id)
        if message.is_broadcast or message.is_read:
            return message
        await self._messages.mark_read(message_id)
        message.is_read = True
        return message

    async def delete(self, message_id: str) -> None:
        if await self._messages.get_by_id(message_id) is None:
            raise MessageNotFoundError(message_id)
        await self._messages.delete(message_id)
        logger.info("Message deleted: %s", message_id)


def visible_to(messages: list[Message], user_id: str) -> list[Message]:
    """The user's inbox: direct messages plus broadcasts."""
    return [m for m in messages if m.user_id == user_id or m.user_id == BROADCAST]


def unread_count(messages: list[Message], user_id: str) -> int:
    return sum(1 for m in messages if m.user_id == user_id and not m.is_read)
