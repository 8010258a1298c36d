from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from rentease_messaging.domain.value_objects.enums import ConversationState
from rentease_messaging.domain.value_objects.ids import (
    ConversationIdentity,
    ConversationKey,
    PersistedIdentity,
    VirtualIdentity,
)


@dataclass(frozen=True, slots=True)
class Counterpart:
    id: str
    full_name: str
    role: str = ""
    email: str = ""


@dataclass(frozen=True, slots=True)
class MessageSnapshot:
    content: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Conversation:
    identity: ConversationIdentity
    counterpart: Counterpart
    state: ConversationState = ConversationState.PERSISTED
    title: str = ""
    last_message: MessageSnapshot | None = None
    unread_count: int = 0
    is_inquiry: bool = False
    updated_at: datetime | None = None

    @property
    def id(self) -> str | None:
        """Server id, or None while the conversation only exists locally."""
        if isinstance(self.identity, PersistedIdentity):
            return self.identity.conversation_id
        return None

    @property
    def key(self) -> ConversationKey:
        return self.identity.key

    @property
    def is_virtual(self) -> bool:
        return isinstance(self.identity, VirtualIdentity)
