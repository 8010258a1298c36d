"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from rentease_messaging.application.dto.conversation import MessageStats, TenantSummary
from rentease_messaging.application.dto.message import DeleteMessageResult, SendMessageDTO
from rentease_messaging.application.dto.principal import Principal
from rentease_messaging.application.exceptions import (
    ApiUnavailableError,
    ForbiddenError,
    NotFoundError,
)
from rentease_messaging.domain import transitions
from rentease_messaging.domain.entities.conversation import Conversation, Counterpart
from rentease_messaging.domain.entities.message import Message
from rentease_messaging.domain.value_objects.enums import UserRole
from rentease_messaging.domain.value_objects.ids import PersistedIdentity

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
_counter = itertools.count(1)


@pytest.fixture
def landlord_principal() -> Principal:
    return Principal(user_id="landlord-1", role=UserRole.LANDLORD)


@pytest.fixture
def tenant_principal() -> Principal:
    return Principal(user_id="tenant-1", role=UserRole.TENANT)


def make_counterpart(
    counterpart_id: str = "tenant-1",
    *,
    full_name: str = "Maria Santos",
    role: str = "TENANT",
    email: str = "maria@example.com",
) -> Counterpart:
    return Counterpart(id=counterpart_id, full_name=full_name, role=role, email=email)


def make_conversation(
    *,
    conversation_id: str | None = None,
    counterpart: Counterpart | None = None,
    is_inquiry: bool = False,
    unread_count: int = 0,
    title: str | None = None,
) -> Conversation:
    counterpart = counterpart or make_counterpart(f"user-{next(_counter)}")
    return Conversation(
        identity=PersistedIdentity(conversation_id or f"conv-{next(_counter)}"),
        counterpart=counterpart,
        title=title if title is not None else counterpart.full_name,
        unread_count=unread_count,
        is_inquiry=is_inquiry,
        updated_at=BASE_TIME,
    )


def make_message(
    *,
    message_id: str | None = None,
    conversation_id: str = "conv-1",
    sender_id: str = "landlord-1",
    content: str = "hello",
    offset_minutes: int = 0,
) -> Message:
    return Message(
        id=message_id or f"msg-{next(_counter)}",
        conversation_id=conversation_id,
        sender_id=sender_id,
        content=content,
        created_at=BASE_TIME + timedelta(minutes=offset_minutes),
    )


@dataclass
class RecordingNotifier:
    successes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def success(self, text: str) -> None:
        self.successes.append(text)

    def error(self, text: str) -> None:
        self.errors.append(text)


@dataclass
class FixedClock:
    instant: datetime = BASE_TIME

    def __call__(self) -> datetime:
        return self.instant


@dataclass
class FakeMessagingApi:
    """In-memory messaging API.

    ``gates`` hold a request until the test sets the event:
    ``messages:<conversation id>``, ``send`` and ``create:<user id>``.
    """

    role: UserRole = UserRole.LANDLORD
    user_id: str = "landlord-1"
    conversations: list[Conversation] = field(default_factory=list)
    messages: dict[str, list[Message]] = field(default_factory=dict)
    stats: MessageStats = field(
        default_factory=lambda: MessageStats(total_conversations=0, unread_messages=0)
    )
    tenants: list[TenantSummary] = field(default_factory=list)
    failing_tenant_ids: set[str] = field(default_factory=set)
    fail_list: bool = False
    fail_roster: bool = False
    fail_send: bool = False
    fail_message_fetch: bool = False
    reject_conversation_delete: bool = False
    fail_conversation_delete: bool = False
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    calls: list[tuple[str, Any]] = field(default_factory=list)

    def calls_to(self, name: str) -> list[Any]:
        return [arg for call, arg in self.calls if call == name]

    async def _wait(self, gate: str) -> None:
        event = self.gates.get(gate)
        if event is not None:
            await event.wait()

    async def list_conversations(self) -> list[Conversation]:
        self.calls.append(("list_conversations", None))
        if self.fail_list:
            raise ApiUnavailableError("Failed to fetch conversations")
        return list(self.conversations)

    async def get_message_stats(self) -> MessageStats:
        self.calls.append(("get_message_stats", None))
        return self.stats

    async def create_or_get_conversation(self, other_user_id: str) -> Conversation:
        self.calls.append(("create_or_get_conversation", other_user_id))
        await self._wait(f"create:{other_user_id}")
        if other_user_id in self.failing_tenant_ids:
            raise ApiUnavailableError("Failed to create or get conversation")
        for conversation in self.conversations:
            if conversation.counterpart.id == other_user_id:
                return conversation
        conversation = make_conversation(counterpart=make_counterpart(other_user_id))
        self.conversations.append(conversation)
        return conversation

    async def list_messages(self, conversation_id: str) -> list[Message]:
        self.calls.append(("list_messages", conversation_id))
        await self._wait(f"messages:{conversation_id}")
        if self.fail_message_fetch:
            raise ApiUnavailableError("Failed to fetch messages")
        return list(self.messages.get(conversation_id, []))

    async def send_message(self, draft: SendMessageDTO) -> Message:
        self.calls.append(("send_message", draft))
        await self._wait("send")
        if self.fail_send:
            raise ApiUnavailableError("Failed to send message")
        conversation_id = draft.conversation_id or f"conv-{next(_counter)}"
        message = make_message(
            conversation_id=conversation_id,
            sender_id=self.user_id,
            content=draft.content,
            offset_minutes=len(self.calls),
        )
        self.messages.setdefault(conversation_id, []).append(message)
        return message

    async def delete_message(self, message_id: str) -> DeleteMessageResult:
        self.calls.append(("delete_message", message_id))
        for conversation_id, stored in self.messages.items():
            for index, message in enumerate(stored):
                if message.id != message_id:
                    continue
                if message.is_deleted:
                    del stored[index]
                    return DeleteMessageResult(message_id=message_id, permanently_deleted=True)
                stored[index] = transitions.soft_delete(message)
                return DeleteMessageResult(message_id=message_id, permanently_deleted=False)
        raise NotFoundError("Message not found or not accessible")

    async def delete_conversation(self, conversation_id: str) -> None:
        self.calls.append(("delete_conversation", conversation_id))
        if self.reject_conversation_delete:
            raise ForbiddenError("You can only delete inquiry conversations", status_code=403)
        if self.fail_conversation_delete:
            raise ApiUnavailableError(f"DELETE /messages/{conversation_id} failed: connection refused")
        self.conversations = [c for c in self.conversations if c.id != conversation_id]

    async def list_active_tenants(self) -> list[TenantSummary]:
        self.calls.append(("list_active_tenants", None))
        if self.fail_roster:
            raise ApiUnavailableError("Failed to fetch tenants")
        return list(self.tenants)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def landlord_api() -> FakeMessagingApi:
    return FakeMessagingApi(role=UserRole.LANDLORD, user_id="landlord-1")


@pytest.fixture
def tenant_api() -> FakeMessagingApi:
    return FakeMessagingApi(role=UserRole.TENANT, user_id="tenant-1")
