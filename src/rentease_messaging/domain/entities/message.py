from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from rentease_messaging.domain.value_objects.enums import MessageStatus

# Content the server writes into a soft-deleted message.
DELETED_PLACEHOLDER = "This message was deleted"


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    conversation_id: str
    sender_id: str
    content: str
    created_at: datetime
    is_read: bool = False
    status: MessageStatus = MessageStatus.ACTIVE

    @property
    def is_deleted(self) -> bool:
        return self.status == MessageStatus.SOFT_DELETED
