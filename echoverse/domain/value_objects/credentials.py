"""Credentials presented for authentication.

A credential is either ``LocalCredentials`` or ``OAuthCredentials``; the
identity resolver dispatches on the concrete type.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from ...core.emails import normalize_email
from ..enums import AuthProvider


@dataclass(frozen=True)
class OAuthProfile:
    """Normalized profile returned by an identity provider"""
    provider_account_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    photo: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "email", normalize_email(self.email))

    @property
    def full_name(self) -> str:
        if self.display_name:
            return self.display_name
        joined = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return joined or self.username or ""


@dataclass(frozen=True)
class OAuthTokens:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class LocalCredentials:
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class OAuthCredentials:
    provider: AuthProvider
    profile: OAuthProfile
    tokens: OAuthTokens = field(default_factory=OAuthTokens, repr=False)

    def __post_init__(self):
        if not self.provider.is_oauth:
            raise ValueError(f"{self.provider.value} is not an OAuth provider")


Credentials = Union[LocalCredentials, OAuthCredentials]
