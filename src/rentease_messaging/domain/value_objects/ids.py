from __future__ import annotations

from dataclasses import dataclass

ConversationKey = tuple[str, str]


def canonical_id(value: object) -> str:
    """Return the comparison form of an identifier.

    The API is not consistent about emitting ids as strings or numbers, so
    every id is compared as a stripped string.
    """
    if value is None:
        raise ValueError("Identifier is required")
    text = str(value).strip()
    if not text:
        raise ValueError("Identifier is empty")
    return text


@dataclass(frozen=True, slots=True)
class PersistedIdentity:
    """Conversation known to the server."""

    conversation_id: str

    @property
    def key(self) -> ConversationKey:
        return ("persisted", self.conversation_id)


@dataclass(frozen=True, slots=True)
class VirtualIdentity:
    """Client-side placeholder addressed to a counterpart; never sent to the server."""

    counterpart_id: str

    @property
    def key(self) -> ConversationKey:
        return ("virtual", self.counterpart_id)


ConversationIdentity = PersistedIdentity | VirtualIdentity
