"""Entrypoint: python -m rentease_messaging --role landlord"""
from __future__ import annotations

import argparse
import asyncio
import logging

from rentease_messaging.application.dto.principal import Principal
from rentease_messaging.application.exceptions import AppError
from rentease_messaging.config import settings
from rentease_messaging.domain.entities.conversation import Conversation
from rentease_messaging.domain.value_objects.enums import UserRole
from rentease_messaging.domain.value_objects.ids import PersistedIdentity, canonical_id
from rentease_messaging.infrastructure.auth.token_claims import principal_from_access_token
from rentease_messaging.infrastructure.http.client import HttpMessagingApi
from rentease_messaging.services.session_manager import ConversationSessionManager

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="rentease_messaging",
        description="List RentEase conversations, or the messages of one conversation.",
    )
    parser.add_argument("--role", choices=["landlord", "tenant"], required=True)
    parser.add_argument("--token", default=None, help="access token (defaults to API_ACCESS_TOKEN)")
    parser.add_argument("--user-id", default=None, help="skip reading the user id from the token")
    parser.add_argument("--base-url", default=None)
    parser.add_argument("--conversation", default=None, help="conversation id to print messages for")
    return parser.parse_args(argv)


def _describe(conversation: Conversation) -> str:
    ident = conversation.id or f"(new with {conversation.counterpart.id})"
    unread = f" [{conversation.unread_count} unread]" if conversation.unread_count else ""
    inquiry = " inquiry" if conversation.is_inquiry else ""
    last = conversation.last_message.content if conversation.last_message else "No messages yet"
    return f"{ident}{inquiry}{unread}  {conversation.title}: {last}"


async def _run(args: argparse.Namespace) -> int:
    role = UserRole(args.role.upper())
    token = args.token or settings.API_ACCESS_TOKEN
    if args.user_id:
        principal = Principal(user_id=canonical_id(args.user_id), role=role)
    else:
        principal = principal_from_access_token(token, role)

    async with HttpMessagingApi(role, base_url=args.base_url, access_token=token) as api:
        roster = api if role == UserRole.LANDLORD else None
        manager = ConversationSessionManager(principal, api, roster=roster)
        await manager.load_conversations()

        if args.conversation is None:
            if manager.stats is not None:
                print(
                    f"{manager.stats.total_conversations} conversations, "
                    f"{manager.stats.unread_messages} unread"
                )
            for conversation in manager.conversations:
                print(_describe(conversation))
            return 0

        key = PersistedIdentity(canonical_id(args.conversation)).key
        selected = next((c for c in manager.conversations if c.key == key), None)
        if selected is None:
            logger.error("Conversation %s not found", args.conversation)
            return 1
        await manager.select_conversation(selected)
        for message in manager.messages:
            who = "me" if message.sender_id == principal.user_id else message.sender_id
            print(f"{message.created_at.isoformat()} {who}: {message.content}")
    return 0


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = _parse_args(argv)
    try:
        code = asyncio.run(_run(args))
    except AppError as exc:
        logger.error("%s", exc.detail)
        code = 1
    raise SystemExit(code)


if __name__ == "__main__":
    main()
