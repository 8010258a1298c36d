from __future__ import annotations

import jwt

from rentease_messaging.application.dto.principal import Principal
from rentease_messaging.application.exceptions import UnauthorizedError
from rentease_messaging.domain.value_objects.enums import UserRole
from rentease_messaging.domain.value_objects.ids import canonical_id


def principal_from_access_token(token: str, role: UserRole) -> Principal:
    """Read the user id out of a RentEase access token.

    The signature is not checked here; the API verifies the token on every
    request. The role is not part of the token and must be supplied.
    """
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise UnauthorizedError("Malformed access token") from exc

    user_id = payload.get("userId", payload.get("sub"))
    if user_id is None or not str(user_id).strip():
        raise UnauthorizedError("Access token carries no user id")
    return Principal(user_id=canonical_id(user_id), role=role)
