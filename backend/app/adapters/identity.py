from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class Identity:
    id: str
    email: Optional[str] = None


class IdentityProvider:
    """
    Source of the authenticated identity for the current session.
    Token issuance and refresh happen upstream; we only consume the result.
    """

    def current_user(self) -> Optional[Identity]:
        raise NotImplementedError


class StaticIdentityProvider(IdentityProvider):
    def __init__(self, identity: Optional[Identity] = None):
        self.identity = identity

    def current_user(self) -> Optional[Identity]:
        return self.identity


class HeaderIdentityProvider(IdentityProvider):
    """
    Reads the identity forwarded by the auth gateway as request headers.
    A missing or blank X-User-Id means the caller is anonymous.
    """

    USER_HEADER = "x-user-id"
    EMAIL_HEADER = "x-user-email"

    def __init__(self, headers: Mapping[str, str]):
        self.headers = headers

    def current_user(self) -> Optional[Identity]:
        user_id = (self.headers.get(self.USER_HEADER) or "").strip()
        if not user_id:
            return None
        return Identity(id=user_id, email=self.headers.get(self.EMAIL_HEADER))
