from __future__ import annotations

from dataclasses import dataclass

from rentease_messaging.domain.value_objects.enums import UserRole


@dataclass(frozen=True, slots=True)
class Principal:
    """Signed-in user the session acts for."""

    user_id: str
    role: UserRole

    @property
    def is_landlord(self) -> bool:
        return self.role == UserRole.LANDLORD

    @property
    def is_tenant(self) -> bool:
        return self.role == UserRole.TENANT
