from pydantic import BaseModel, Field

from src.sf_messaging.domain.models import BROADCAST, Message


class SendMessageRequest(BaseModel):
    # A concrete user id, or "ALL" to broadcast
    user_id: str = Field(BROADCAST, min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    id: str
    user_id: str
    title: str
    content: str
    timestamp: int
    is_read: bool
    is_broadcast: bool
    from_admin: bool

    @classmethod
    def from_domain(cls, m: Message) -> "MessageResponse":
        return cls(
            id=m.id,
            user_id=m.user_id,
            title=m.title,
            content=m.content,
            timestamp=m.timestamp,
            is_read=m.is_read,
            is_broadcast=m.is_broadcast,
            from_admin=m.from_admin,
        )


class InboxResponse(BaseModel):
    items: list[MessageResponse]
    unread_count: int


class MessageListResponse(BaseModel):
    items: list[MessageResponse]
