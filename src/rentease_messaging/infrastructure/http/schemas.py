"""Wire models for the RentEase messaging endpoints (camelCase JSON)."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from rentease_messaging.domain.value_objects.ids import canonical_id

WireId = Annotated[str, BeforeValidator(canonical_id)]


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UserPayload(WireModel):
    id: WireId
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    email: str | None = None
    role: str | None = None
    full_name: str | None = Field(default=None, alias="fullName")

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.email or ""


class LastMessagePayload(WireModel):
    content: str
    created_at: datetime = Field(alias="createdAt")


class ConversationPayload(WireModel):
    id: WireId | None = None
    title: str | None = None
    other_user: UserPayload = Field(alias="otherUser")
    last_message: LastMessagePayload | None = Field(default=None, alias="lastMessage")
    unread_count: int = Field(default=0, ge=0, alias="unreadCount")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    is_inquiry: bool = Field(default=False, alias="isInquiry")


class CreateConversationResponse(WireModel):
    conversation: ConversationPayload


class MessagePayload(WireModel):
    id: WireId
    conversation_id: WireId = Field(alias="conversationId")
    sender_id: WireId = Field(alias="senderId")
    content: str
    is_read: bool = Field(default=False, alias="isRead")
    created_at: datetime = Field(alias="createdAt")


class ConversationMessagesResponse(WireModel):
    messages: list[MessagePayload] = Field(default_factory=list)


class SendMessageResponse(WireModel):
    message: MessagePayload


class DeleteMessageResponse(WireModel):
    permanently_deleted: bool = Field(default=False, alias="permanentlyDeleted")


class MessageStatsPayload(WireModel):
    total_conversations: int = Field(default=0, alias="totalConversations")
    total_messages: int = Field(default=0, alias="totalMessages")
    unread_messages: int = Field(default=0, alias="unreadMessages")
    recent_conversations: int = Field(default=0, alias="recentConversations")


class TenantManagementItemPayload(WireModel):
    id: WireId
    type: str
    status: str | None = None
    tenant: UserPayload | None = None


class SendMessageRequest(WireModel):
    content: str
    conversation_id: str | None = Field(default=None, alias="conversationId")
    recipient_id: str | None = Field(default=None, alias="recipientId")


class CreateConversationRequest(WireModel):
    other_user_id: str = Field(alias="otherUserId")


class ErrorPayload(WireModel):
    message: str = ""
