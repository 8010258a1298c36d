"""State transitions for conversations and messages.

A conversation moves VIRTUAL -> PERSISTING -> PERSISTED. PERSISTING falls
back to VIRTUAL when the first send fails. Every transition returns a new
frozen entity; nothing is mutated in place.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from rentease_messaging.domain.entities.conversation import (
    Conversation,
    Counterpart,
    MessageSnapshot,
)
from rentease_messaging.domain.entities.message import DELETED_PLACEHOLDER, Message
from rentease_messaging.domain.value_objects.enums import ConversationState, MessageStatus
from rentease_messaging.domain.value_objects.ids import (
    PersistedIdentity,
    VirtualIdentity,
    canonical_id,
)


def make_virtual(counterpart: Counterpart, now: datetime) -> Conversation:
    return Conversation(
        identity=VirtualIdentity(canonical_id(counterpart.id)),
        counterpart=counterpart,
        state=ConversationState.VIRTUAL,
        title=counterpart.full_name,
        updated_at=now,
    )


def begin_persisting(conversation: Conversation) -> Conversation:
    if conversation.state != ConversationState.VIRTUAL:
        raise ValueError(f"Cannot persist a conversation in state {conversation.state}")
    return replace(conversation, state=ConversationState.PERSISTING)


def revert_to_virtual(conversation: Conversation) -> Conversation:
    if conversation.state != ConversationState.PERSISTING:
        raise ValueError(f"Cannot revert a conversation in state {conversation.state}")
    return replace(conversation, state=ConversationState.VIRTUAL)


def record_sent_message(conversation: Conversation, message: Message) -> Conversation:
    """Apply a server-acknowledged send to the conversation it was sent into.

    A virtual or persisting conversation takes over the server-assigned id
    from the message.
    """
    identity = conversation.identity
    if conversation.is_virtual:
        identity = PersistedIdentity(canonical_id(message.conversation_id))
    return replace(
        conversation,
        identity=identity,
        state=ConversationState.PERSISTED,
        last_message=MessageSnapshot(content=message.content, created_at=message.created_at),
        unread_count=0,
        updated_at=message.created_at,
    )


def soft_delete(message: Message) -> Message:
    return replace(message, content=DELETED_PLACEHOLDER, status=MessageStatus.SOFT_DELETED)
