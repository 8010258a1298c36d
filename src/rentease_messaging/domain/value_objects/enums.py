from __future__ import annotations

from enum import StrEnum


class UserRole(StrEnum):
    ADMIN = "ADMIN"
    LANDLORD = "LANDLORD"
    TENANT = "TENANT"


class ConversationState(StrEnum):
    VIRTUAL = "virtual"
    PERSISTING = "persisting"
    PERSISTED = "persisted"


class MessageStatus(StrEnum):
    ACTIVE = "active"
    SOFT_DELETED = "soft_deleted"
