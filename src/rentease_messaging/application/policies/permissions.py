from __future__ import annotations

from rentease_messaging.application.dto.principal import Principal
from rentease_messaging.application.exceptions import ForbiddenError
from rentease_messaging.domain.entities.conversation import Conversation
from rentease_messaging.domain.entities.message import Message
from rentease_messaging.domain.value_objects.ids import canonical_id


def can_delete_conversation(principal: Principal, conversation: Conversation) -> bool:
    """Landlords may delete any conversation; tenants only their inquiry threads."""
    if conversation.is_virtual:
        return False
    if principal.is_landlord:
        return True
    if principal.is_tenant:
        return conversation.is_inquiry
    return False


def assert_can_delete_conversation(principal: Principal, conversation: Conversation) -> None:
    if conversation.is_virtual:
        raise ForbiddenError("Conversation has not been started yet")
    if not can_delete_conversation(principal, conversation):
        raise ForbiddenError("Only inquiry conversations can be deleted")


def can_delete_message(principal: Principal, message: Message) -> bool:
    return canonical_id(message.sender_id) == canonical_id(principal.user_id)


def assert_can_delete_message(principal: Principal, message: Message) -> None:
    if not can_delete_message(principal, message):
        raise ForbiddenError("You can only delete your own messages")
