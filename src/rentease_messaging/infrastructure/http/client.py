"""Async REST client for the RentEase messaging API.

Usage:
    async with HttpMessagingApi(UserRole.LANDLORD, access_token="eyJ...") as api:
        conversations = await api.list_conversations()
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as SchemaError

from rentease_messaging.application.dto.conversation import MessageStats, TenantSummary
from rentease_messaging.application.dto.message import DeleteMessageResult, SendMessageDTO
from rentease_messaging.application.exceptions import (
    ApiUnavailableError,
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from rentease_messaging.config import settings
from rentease_messaging.domain.entities.conversation import Conversation
from rentease_messaging.domain.entities.message import Message
from rentease_messaging.domain.value_objects.enums import UserRole
from rentease_messaging.infrastructure.http.mappers import (
    conversation_from_payload,
    message_from_payload,
    stats_from_payload,
    tenant_from_payload,
)
from rentease_messaging.infrastructure.http.routes import ACTIVE_TENANTS_PATH, routes_for
from rentease_messaging.infrastructure.http.schemas import (
    ConversationMessagesResponse,
    ConversationPayload,
    CreateConversationRequest,
    CreateConversationResponse,
    DeleteMessageResponse,
    ErrorPayload,
    MessageStatsPayload,
    SendMessageRequest,
    SendMessageResponse,
    TenantManagementItemPayload,
)

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"

_STATUS_ERRORS: dict[int, type[AppError]] = {
    400: ValidationError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}

_CONVERSATION_LIST = TypeAdapter(list[ConversationPayload])
_TENANT_LIST = TypeAdapter(list[TenantManagementItemPayload])

M = TypeVar("M", bound=BaseModel)


def _error_from_response(response: httpx.Response) -> AppError:
    try:
        detail = ErrorPayload.model_validate(response.json()).message
    except (ValueError, SchemaError):
        detail = ""
    detail = detail or response.reason_phrase or f"HTTP {response.status_code}"
    error_cls = _STATUS_ERRORS.get(response.status_code, ApiUnavailableError)
    return error_cls(detail, status_code=response.status_code)


def _parse(model: type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except SchemaError as exc:
        raise ApiUnavailableError(f"Malformed {model.__name__}: {exc.error_count()} errors") from exc


class HttpMessagingApi:
    """Messaging endpoints of one role namespace over HTTP.

    Authentication rides on the ``accessToken`` cookie. A 401 triggers one
    session refresh, shared by every request that hit the 401 concurrently,
    followed by a single retry.
    """

    def __init__(
        self,
        role: UserRole,
        *,
        base_url: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        refresh_path: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.role = role
        self._routes = routes_for(role)
        self._refresh_path = refresh_path or settings.API_REFRESH_PATH
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.API_BASE_URL).rstrip("/"),
            timeout=timeout if timeout is not None else settings.API_TIMEOUT_SECONDS,
            transport=transport,
        )
        token = access_token if access_token is not None else settings.API_ACCESS_TOKEN
        if token:
            self._client.cookies.set(ACCESS_TOKEN_COOKIE, token)
        self._refresh_lock = asyncio.Lock()
        self._session_generation = 0

    async def __aenter__(self) -> HttpMessagingApi:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _send(self, method: str, path: str, json: dict[str, Any] | None) -> httpx.Response:
        try:
            return await self._client.request(method, path, json=json)
        except httpx.RequestError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise ApiUnavailableError(f"{method} {path} failed: {exc}") from exc

    async def _refresh_session(self, generation: int) -> None:
        async with self._refresh_lock:
            if generation != self._session_generation:
                return
            response = await self._send("POST", self._refresh_path, None)
            if response.status_code >= 400:
                logger.warning("Session refresh rejected (%s)", response.status_code)
                raise UnauthorizedError("Session expired", status_code=response.status_code)
            self._session_generation += 1
            logger.debug("Session refreshed")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> Any:
        generation = self._session_generation
        response = await self._send(method, path, json)
        if response.status_code == 401:
            await self._refresh_session(generation)
            response = await self._send(method, path, json)

        if response.status_code >= 400:
            raise _error_from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiUnavailableError(f"{method} {path} returned invalid JSON") from exc

    # Conversations

    async def list_conversations(self) -> list[Conversation]:
        data = await self._request("GET", self._routes.conversations)
        try:
            payloads = _CONVERSATION_LIST.validate_python(data or [])
        except SchemaError as exc:
            raise ApiUnavailableError("Malformed conversation list") from exc
        return [conversation_from_payload(p) for p in payloads]

    async def get_message_stats(self) -> MessageStats:
        data = await self._request("GET", self._routes.stats)
        return stats_from_payload(_parse(MessageStatsPayload, data))

    async def create_or_get_conversation(self, other_user_id: str) -> Conversation:
        body = CreateConversationRequest(other_user_id=other_user_id)
        data = await self._request(
            "POST",
            self._routes.create_conversation,
            json=body.model_dump(by_alias=True),
        )
        return conversation_from_payload(_parse(CreateConversationResponse, data).conversation)

    async def delete_conversation(self, conversation_id: str) -> None:
        path = self._routes.delete_conversation.format(conversation_id=conversation_id)
        await self._request("DELETE", path)

    # Messages

    async def list_messages(self, conversation_id: str) -> list[Message]:
        path = self._routes.conversation_messages.format(conversation_id=conversation_id)
        data = await self._request("GET", path)
        payload = _parse(ConversationMessagesResponse, data)
        return [message_from_payload(m) for m in payload.messages]

    async def send_message(self, draft: SendMessageDTO) -> Message:
        body = SendMessageRequest(
            content=draft.content,
            conversation_id=draft.conversation_id,
            recipient_id=draft.recipient_id,
        )
        data = await self._request(
            "POST",
            self._routes.send_message,
            json=body.model_dump(by_alias=True, exclude_none=True),
        )
        return message_from_payload(_parse(SendMessageResponse, data).message)

    async def delete_message(self, message_id: str) -> DeleteMessageResult:
        path = self._routes.delete_message.format(message_id=message_id)
        data = await self._request("DELETE", path)
        payload = _parse(DeleteMessageResponse, data or {})
        return DeleteMessageResult(
            message_id=message_id,
            permanently_deleted=payload.permanently_deleted,
        )

    # Tenant roster

    async def list_active_tenants(self) -> list[TenantSummary]:
        if self.role != UserRole.LANDLORD:
            raise ForbiddenError("Only landlords have a tenant roster")
        data = await self._request("GET", ACTIVE_TENANTS_PATH)
        try:
            items = _TENANT_LIST.validate_python(data or [])
        except SchemaError as exc:
            raise ApiUnavailableError("Malformed tenant list") from exc
        return [
            tenant_from_payload(item.tenant)
            for item in items
            if item.type == "TENANT" and item.tenant is not None
        ]
