from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    """Outgoing message addressed either to a conversation or, for a first message, to a recipient."""

    content: str
    conversation_id: str | None = None
    recipient_id: str | None = None

    def __post_init__(self) -> None:
        if (self.conversation_id is None) == (self.recipient_id is None):
            raise ValueError("Exactly one of conversation_id or recipient_id is required")


@dataclass(frozen=True, slots=True)
class DeleteMessageResult:
    message_id: str
    permanently_deleted: bool
