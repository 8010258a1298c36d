from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MessageStats:
    total_conversations: int
    unread_messages: int
    total_messages: int = 0
    recent_conversations: int = 0


@dataclass(frozen=True, slots=True)
class TenantSummary:
    """Active tenant of a landlord, as listed by the tenant roster."""

    id: str
    full_name: str
    email: str = ""
