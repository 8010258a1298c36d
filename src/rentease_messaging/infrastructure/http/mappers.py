from __future__ import annotations

from rentease_messaging.application.dto.conversation import MessageStats, TenantSummary
from rentease_messaging.domain.entities.conversation import (
    Conversation,
    Counterpart,
    MessageSnapshot,
)
from rentease_messaging.domain.entities.message import DELETED_PLACEHOLDER, Message
from rentease_messaging.domain.value_objects.enums import ConversationState, MessageStatus
from rentease_messaging.domain.value_objects.ids import PersistedIdentity, VirtualIdentity
from rentease_messaging.infrastructure.http.schemas import (
    ConversationPayload,
    MessagePayload,
    MessageStatsPayload,
    UserPayload,
)


def counterpart_from_payload(payload: UserPayload) -> Counterpart:
    return Counterpart(
        id=payload.id,
        full_name=payload.display_name,
        role=payload.role or "",
        email=payload.email or "",
    )


def conversation_from_payload(payload: ConversationPayload) -> Conversation:
    counterpart = counterpart_from_payload(payload.other_user)
    # The tenant list carries the current landlord with a null id until the
    # first message is sent.
    if payload.id is None:
        identity = VirtualIdentity(counterpart.id)
        state = ConversationState.VIRTUAL
    else:
        identity = PersistedIdentity(payload.id)
        state = ConversationState.PERSISTED

    last_message = None
    if payload.last_message is not None:
        last_message = MessageSnapshot(
            content=payload.last_message.content,
            created_at=payload.last_message.created_at,
        )

    return Conversation(
        identity=identity,
        counterpart=counterpart,
        state=state,
        title=payload.title or counterpart.full_name,
        last_message=last_message,
        unread_count=payload.unread_count,
        is_inquiry=payload.is_inquiry,
        updated_at=payload.updated_at,
    )


def message_from_payload(payload: MessagePayload) -> Message:
    status = MessageStatus.ACTIVE
    if payload.content == DELETED_PLACEHOLDER:
        status = MessageStatus.SOFT_DELETED
    return Message(
        id=payload.id,
        conversation_id=payload.conversation_id,
        sender_id=payload.sender_id,
        content=payload.content,
        created_at=payload.created_at,
        is_read=payload.is_read,
        status=status,
    )


def stats_from_payload(payload: MessageStatsPayload) -> MessageStats:
    return MessageStats(
        total_conversations=payload.total_conversations,
        unread_messages=payload.unread_messages,
        total_messages=payload.total_messages,
        recent_conversations=payload.recent_conversations,
    )


def tenant_from_payload(payload: UserPayload) -> TenantSummary:
    return TenantSummary(
        id=payload.id,
        full_name=payload.display_name,
        email=payload.email or "",
    )
