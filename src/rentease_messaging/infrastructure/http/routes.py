from __future__ import annotations

from dataclasses import dataclass

from rentease_messaging.domain.value_objects.enums import UserRole


@dataclass(frozen=True, slots=True)
class MessagingRoutes:
    """Paths of one role's messaging namespace, relative to the API base URL."""

    conversations: str
    stats: str
    create_conversation: str
    conversation_messages: str
    send_message: str
    delete_message: str
    delete_conversation: str


ROUTES: dict[UserRole, MessagingRoutes] = {
    UserRole.LANDLORD: MessagingRoutes(
        conversations="/landlord/messages",
        stats="/landlord/messages/stats",
        create_conversation="/landlord/messages/conversation",
        conversation_messages="/landlord/messages/{conversation_id}",
        send_message="/landlord/messages",
        delete_message="/landlord/messages/message/{message_id}",
        delete_conversation="/landlord/messages/{conversation_id}",
    ),
    UserRole.TENANT: MessagingRoutes(
        conversations="/tenant/messages",
        stats="/tenant/messages/stats",
        create_conversation="/tenant/messages/conversation",
        conversation_messages="/tenant/messages/{conversation_id}",
        send_message="/tenant/messages",
        delete_message="/tenant/messages/{message_id}",
        delete_conversation="/tenant/messages/conversation/{conversation_id}",
    ),
}

ACTIVE_TENANTS_PATH = "/landlord/tenants"


def routes_for(role: UserRole) -> MessagingRoutes:
    try:
        return ROUTES[role]
    except KeyError:
        raise ValueError(f"No messaging namespace for role {role}") from None
