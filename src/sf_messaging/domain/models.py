"""Domain models for sf_messaging — pure dataclasses."""

from dataclasses import dataclass

# Recipient id addressing every user
BROADCAST = "ALL"


@dataclass
class Message:
    id: str
    user_id: str  # concrete user id or BROADCAST
    title: str
    content: str
    timestamp: int  # epoch ms
    is_read: bool = False  # meaningless for broadcasts
    from_admin: bool = True

    @property
    def is_broadcast(self) -> bool:
        return self.user_id == BROADCAST
