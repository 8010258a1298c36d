"""Pure operations over the ordered conversation list.

Each operation only touches the entry it is keyed on, so completions of
unrelated requests can be applied in any order.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence

from rentease_messaging.domain.entities.conversation import Conversation
from rentease_messaging.domain.value_objects.ids import ConversationKey, canonical_id

ConversationList = tuple[Conversation, ...]


def find_by_key(conversations: Iterable[Conversation], key: ConversationKey) -> Conversation | None:
    for conversation in conversations:
        if conversation.key == key:
            return conversation
    return None


def find_by_counterpart(
    conversations: Iterable[Conversation], counterpart_id: object,
) -> Conversation | None:
    wanted = canonical_id(counterpart_id)
    for conversation in conversations:
        if canonical_id(conversation.counterpart.id) == wanted:
            return conversation
    return None


def replace(
    conversations: Sequence[Conversation],
    key: ConversationKey,
    updated: Conversation,
    *,
    insert_missing: bool = False,
) -> ConversationList:
    """Swap the entry stored under ``key`` for ``updated``.

    When ``updated`` is persisted, any other entry for the same counterpart
    that is still virtual, or that already carries the new key, is dropped so
    a counterpart is never listed twice.
    """
    counterpart_id = canonical_id(updated.counterpart.id)
    result: list[Conversation] = []
    found = False
    for conversation in conversations:
        if conversation.key == key:
            if not found:
                result.append(updated)
                found = True
            continue
        if not updated.is_virtual:
            if conversation.key == updated.key:
                continue
            if conversation.is_virtual and canonical_id(conversation.counterpart.id) == counterpart_id:
                continue
        result.append(conversation)
    if not found and insert_missing:
        result.insert(0, updated)
    return tuple(result)


def remove(conversations: Sequence[Conversation], key: ConversationKey) -> ConversationList:
    return tuple(c for c in conversations if c.key != key)


def prepend_missing(
    new: Iterable[Conversation], conversations: Sequence[Conversation],
) -> ConversationList:
    """Put ``new`` in front of the list, skipping counterparts already present."""
    seen = {canonical_id(c.counterpart.id) for c in conversations}
    head: list[Conversation] = []
    for conversation in new:
        counterpart_id = canonical_id(conversation.counterpart.id)
        if counterpart_id in seen:
            continue
        seen.add(counterpart_id)
        head.append(conversation)
    return (*head, *conversations)


def search(conversations: Sequence[Conversation], query: str) -> ConversationList:
    needle = query.strip().lower()
    if not needle:
        return tuple(conversations)
    return tuple(
        c for c in conversations
        if needle in c.title.lower()
        or needle in c.counterpart.full_name.lower()
        or needle in c.counterpart.email.lower()
    )
