"""Messaging session for one signed-in user.

The manager keeps the conversation list, the active conversation and its
messages in sync with the messaging API. Local state is updated
optimistically where that is safe (the draft is cleared on send, unread
counts are reset) and reconciled with the server's answer otherwise.

Every network operation follows the same rules:

* it runs in its own CancellationScope; a cancelled request is dropped
  without touching state or notifying the user;
* a real failure produces exactly one notification and leaves state as it
  was before the call.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from rentease_messaging.application.cancellation import CancellationScope
from rentease_messaging.application.dto.conversation import MessageStats
from rentease_messaging.application.dto.message import SendMessageDTO
from rentease_messaging.application.dto.principal import Principal
from rentease_messaging.application.exceptions import AppError, ForbiddenError, RequestCancelled
from rentease_messaging.application.policies.permissions import (
    assert_can_delete_conversation,
    assert_can_delete_message,
)
from rentease_messaging.application.ports.messaging_api import MessagingApi, TenantRoster
from rentease_messaging.application.ports.notifier import LoggingNotifier, Notifier
from rentease_messaging.config import settings
from rentease_messaging.domain import conversation_list, transitions
from rentease_messaging.domain.entities.conversation import Conversation, Counterpart
from rentease_messaging.domain.entities.message import Message
from rentease_messaging.domain.value_objects.enums import ConversationState
from rentease_messaging.domain.value_objects.ids import (
    ConversationKey,
    PersistedIdentity,
    canonical_id,
)
from rentease_messaging.services import conversation_service

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ConversationSessionManager:
    def __init__(
        self,
        principal: Principal,
        api: MessagingApi,
        notifier: Notifier | None = None,
        *,
        roster: TenantRoster | None = None,
        clock: Callable[[], datetime] | None = None,
        auto_provision: bool | None = None,
    ) -> None:
        if api.role != principal.role:
            raise ValueError(f"API namespace {api.role} does not match role {principal.role}")
        self.principal = principal
        self._api = api
        self._roster = roster
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock or _utc_now
        if auto_provision is None:
            auto_provision = settings.AUTO_PROVISION_TENANT_CONVERSATIONS
        self._auto_provision = auto_provision

        self._conversations: conversation_list.ConversationList = ()
        self._active: Conversation | None = None
        self._messages: tuple[Message, ...] = ()
        self.draft = ""
        self.stats: MessageStats | None = None

        self._scopes: set[CancellationScope] = set()
        self._load_scope: CancellationScope | None = None
        self._fetch_scope: CancellationScope | None = None
        self._sending: set[ConversationKey] = set()

    @property
    def conversations(self) -> conversation_list.ConversationList:
        return self._conversations

    @property
    def active_conversation(self) -> Conversation | None:
        return self._active

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._messages

    def is_sending(self, conversation: Conversation | None = None) -> bool:
        target = conversation or self._active
        return target is not None and target.key in self._sending

    def search(self, query: str) -> conversation_list.ConversationList:
        return conversation_list.search(self._conversations, query)

    def close(self) -> None:
        """Cancel everything in flight, as when the messaging view goes away."""
        for scope in list(self._scopes):
            scope.cancel()

    # Scopes

    def _open_scope(self, name: str) -> CancellationScope:
        scope = CancellationScope(name)
        self._scopes.add(scope)
        return scope

    def _release_scope(self, scope: CancellationScope) -> None:
        self._scopes.discard(scope)
        if self._fetch_scope is scope:
            self._fetch_scope = None
        if self._load_scope is scope:
            self._load_scope = None

    def _cancel_fetch(self) -> None:
        if self._fetch_scope is not None:
            self._fetch_scope.cancel()
            self._fetch_scope = None

    # Local state

    def _update_conversation(
        self, key: ConversationKey, updated: Conversation, *, insert_missing: bool = False,
    ) -> None:
        self._conversations = conversation_list.replace(
            self._conversations, key, updated, insert_missing=insert_missing,
        )
        if self._active is not None and self._active.key == key:
            self._active = updated

    def _latest(self, conversation: Conversation) -> Conversation:
        if self._active is not None and self._active.key == conversation.key:
            return self._active
        found = conversation_list.find_by_key(self._conversations, conversation.key)
        return found or conversation

    # Operations

    async def load_conversations(self) -> None:
        """Load the conversation list and stats for the principal's role."""
        if self._load_scope is not None:
            self._load_scope.cancel()
        scope = self._open_scope("load conversations")
        self._load_scope = scope
        try:
            conversations, stats = await scope.run(
                conversation_service.load_inbox(
                    self.principal,
                    self._api,
                    self._roster,
                    auto_provision=self._auto_provision,
                )
            )
        except RequestCancelled:
            logger.debug("Conversation load cancelled")
            return
        except AppError as exc:
            logger.error("Error fetching conversations: %s", exc.detail)
            self._notifier.error("Failed to fetch conversations")
            return
        finally:
            self._release_scope(scope)

        self._conversations = tuple(conversations)
        self.stats = stats

    async def refresh_stats(self) -> None:
        scope = self._open_scope("message stats")
        try:
            stats = await scope.run(self._api.get_message_stats())
        except RequestCancelled:
            return
        except AppError as exc:
            logger.error("Error fetching message stats: %s", exc.detail)
            self._notifier.error("Failed to fetch message statistics")
            return
        finally:
            self._release_scope(scope)
        self.stats = stats

    async def select_conversation(self, conversation: Conversation) -> None:
        """Make ``conversation`` active and fetch its messages.

        The fetch for the previously active conversation is cancelled, so a
        slow response for it can never overwrite this conversation's messages.
        """
        self._cancel_fetch()
        self._active = conversation
        self._messages = ()
        if conversation.id is None:
            logger.debug("Selected virtual conversation with %s", conversation.counterpart.id)
            return

        scope = self._open_scope(f"messages of {conversation.id}")
        self._fetch_scope = scope
        try:
            messages = await scope.run(self._api.list_messages(conversation.id))
        except RequestCancelled:
            logger.debug("Message fetch for %s cancelled", conversation.id)
            return
        except AppError as exc:
            logger.error("Error fetching messages for %s: %s", conversation.id, exc.detail)
            self._notifier.error("Failed to fetch messages")
            return
        finally:
            self._release_scope(scope)

        self._messages = tuple(messages)

    async def open_counterpart(self, counterpart: Counterpart) -> Conversation:
        """Select the conversation with ``counterpart``, starting one if needed.

        Landlords ask the server for the conversation first. When that fails,
        and always for tenants, a virtual conversation is selected instead;
        it becomes real when the first message is sent.
        """
        existing = conversation_list.find_by_counterpart(self._conversations, counterpart.id)
        if existing is not None:
            await self.select_conversation(existing)
            return existing

        if self.principal.is_landlord:
            scope = self._open_scope(f"start conversation with {counterpart.id}")
            try:
                created = await scope.run(
                    self._api.create_or_get_conversation(canonical_id(counterpart.id))
                )
            except RequestCancelled:
                created = None
            except AppError as exc:
                logger.error("Error creating conversation with %s: %s", counterpart.id, exc.detail)
                self._notifier.error("Failed to start conversation")
                created = None
            finally:
                self._release_scope(scope)
            if created is not None:
                self._conversations = conversation_list.prepend_missing(
                    [created], self._conversations,
                )
                self._notifier.success(f"Started conversation with {counterpart.full_name}")
                await self.select_conversation(created)
                return created

        virtual = transitions.make_virtual(counterpart, self._clock())
        await self.select_conversation(virtual)
        return virtual

    async def send_message(self, text: str | None = None) -> Message | None:
        """Send ``text`` (the draft by default) into the active conversation.

        Returns the stored message, or None when nothing was sent: empty
        text, no active conversation, a send already in flight for this
        conversation, or a failure.
        """
        conversation = self._active
        if conversation is None:
            return None
        previous_draft = self.draft
        composed = previous_draft if text is None else text
        content = composed.strip()
        if not content:
            return None
        key = conversation.key
        if key in self._sending:
            logger.debug("Send already in flight for %s; ignoring", key)
            return None

        self._sending.add(key)
        # An explicit text leaves an unrelated draft alone.
        restore = None
        if text is None or text == previous_draft:
            restore = previous_draft
            self.draft = ""
        if conversation.is_virtual:
            draft = SendMessageDTO(content=content, recipient_id=canonical_id(conversation.counterpart.id))
            if conversation.state == ConversationState.VIRTUAL:
                self._update_conversation(key, transitions.begin_persisting(conversation))
        else:
            draft = SendMessageDTO(content=content, conversation_id=conversation.id)

        scope = self._open_scope(f"send to {key[1]}")
        try:
            message = await scope.run(self._api.send_message(draft))
        except RequestCancelled:
            logger.debug("Send to %s cancelled", key)
            self._rollback_send(conversation, restore)
            return None
        except AppError as exc:
            logger.error("Error sending message to %s: %s", key, exc.detail)
            self._rollback_send(conversation, restore)
            self._notifier.error("Failed to send message")
            return None
        finally:
            self._sending.discard(key)
            self._release_scope(scope)

        updated = transitions.record_sent_message(self._latest(conversation), message)
        self._update_conversation(key, updated, insert_missing=conversation.is_virtual)
        if (
            self._active is not None
            and self._active.key == updated.key
            and all(m.id != message.id for m in self._messages)
        ):
            self._messages = (*self._messages, message)
        self._notifier.success("Message sent successfully")
        return message

    def _rollback_send(self, conversation: Conversation, restore: str | None) -> None:
        current = self._latest(conversation)
        if current.state == ConversationState.PERSISTING:
            self._update_conversation(current.key, transitions.revert_to_virtual(current))
        if restore is not None and not self.draft:
            self.draft = restore

    async def delete_message(self, message_id: str) -> bool:
        """Delete one of the principal's messages.

        The server decides the tier: a first delete leaves a soft-deleted
        placeholder in place, deleting the placeholder removes it.
        """
        wanted = canonical_id(message_id)
        message = next((m for m in self._messages if m.id == wanted), None)
        if message is None:
            logger.warning("Message %s is not in the active conversation", wanted)
            return False
        try:
            assert_can_delete_message(self.principal, message)
        except ForbiddenError as exc:
            self._notifier.error(exc.detail)
            return False

        scope = self._open_scope(f"delete message {wanted}")
        try:
            result = await scope.run(self._api.delete_message(wanted))
        except RequestCancelled:
            return False
        except AppError as exc:
            logger.error("Error deleting message %s: %s", wanted, exc.detail)
            self._notifier.error("Failed to delete message")
            return False
        finally:
            self._release_scope(scope)

        if result.permanently_deleted:
            self._messages = tuple(m for m in self._messages if m.id != wanted)
            self._notifier.success("Message permanently deleted")
        else:
            self._messages = tuple(
                transitions.soft_delete(m) if m.id == wanted else m for m in self._messages
            )
            self._notifier.success("Message deleted successfully")
        return True

    async def delete_conversation(self, conversation_id: str) -> bool:
        key = PersistedIdentity(canonical_id(conversation_id)).key
        target = conversation_list.find_by_key(self._conversations, key)
        if target is None and self._active is not None and self._active.key == key:
            target = self._active
        if target is None:
            logger.warning("Conversation %s is not loaded", conversation_id)
            return False
        try:
            assert_can_delete_conversation(self.principal, target)
        except ForbiddenError as exc:
            logger.info("Refused to delete conversation %s: %s", target.id, exc.detail)
            self._notifier.error("Unauthorized to delete this conversation")
            return False

        scope = self._open_scope(f"delete conversation {target.id}")
        try:
            await scope.run(self._api.delete_conversation(target.id))
        except RequestCancelled:
            return False
        except AppError as exc:
            logger.error("Error deleting conversation %s: %s", target.id, exc.detail)
            # Only a server answer carries a message meant for the user.
            if exc.status_code is not None and exc.detail:
                self._notifier.error(exc.detail)
            else:
                self._notifier.error("Failed to delete conversation")
            return False
        finally:
            self._release_scope(scope)

        self._conversations = conversation_list.remove(self._conversations, key)
        if self._active is not None and self._active.key == key:
            self._cancel_fetch()
            self._active = None
            self._messages = ()
        self._notifier.success("Conversation deleted successfully")
        return True
