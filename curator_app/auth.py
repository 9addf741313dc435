"""Auth context forwarded by the upstream authentication gateway."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

USER_ID_HEADER = "x-user-id"
EMAIL_HEADER = "x-user-email"


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    email: Optional[str] = None


def resolve_auth_context(headers: Mapping[str, str]) -> Optional[AuthContext]:
    """Return the verified caller identity, or ``None`` when absent.

    Token verification happens at the gateway; this service only trusts the
    identity headers it forwards.
    """

    lowered = {str(key).lower(): value for key, value in headers.items()}
    user_id = (lowered.get(USER_ID_HEADER) or "").strip()
    if not user_id:
        return None
    email = (lowered.get(EMAIL_HEADER) or "").strip() or None
    return AuthContext(user_id=user_id, email=email)


__all__ = ["AuthContext", "resolve_auth_context"]
