from __future__ import annotations

from typing import Protocol

from rentease_messaging.application.dto.conversation import MessageStats, TenantSummary
from rentease_messaging.application.dto.message import DeleteMessageResult, SendMessageDTO
from rentease_messaging.domain.entities.conversation import Conversation
from rentease_messaging.domain.entities.message import Message
from rentease_messaging.domain.value_objects.enums import UserRole


class MessagingApi(Protocol):
    """Messaging endpoints of one role namespace.

    Implementations raise AppError subclasses. Cancellation is delivered by
    cancelling the awaiting task.
    """

    role: UserRole

    async def list_conversations(self) -> list[Conversation]: ...

    async def get_message_stats(self) -> MessageStats: ...

    async def create_or_get_conversation(self, other_user_id: str) -> Conversation: ...

    async def list_messages(self, conversation_id: str) -> list[Message]: ...

    async def send_message(self, draft: SendMessageDTO) -> Message:
        """Return the stored message. Its conversation_id is authoritative."""
        ...

    async def delete_message(self, message_id: str) -> DeleteMessageResult: ...

    async def delete_conversation(self, conversation_id: str) -> None: ...


class TenantRoster(Protocol):
    async def list_active_tenants(self) -> list[TenantSummary]: ...
