"""Account entity: a link between a user and one external identity"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ...core.clock import utcnow
from ..enums import AuthProvider
from ..value_objects.credentials import OAuthTokens
from ..value_objects.entity_ids import UserId


@dataclass
class Account:
    id: Optional[int]
    user_id: UserId
    provider: AuthProvider
    provider_account_id: str
    access_token: Optional[str] = field(default=None, repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)
    id_token: Optional[str] = field(default=None, repr=False)
    expires_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def link(
        cls,
        user_id: UserId,
        provider: AuthProvider,
        provider_account_id: str,
        tokens: OAuthTokens
    ) -> 'Account':
        return cls(
            id=None,
            user_id=user_id,
            provider=provider,
            provider_account_id=str(provider_account_id),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            id_token=tokens.id_token,
            expires_at=tokens.expires_at
        )

    def refresh_tokens(self, tokens: OAuthTokens) -> None:
        """Store the tokens handed out on the latest login"""
        self.access_token = tokens.access_token
        self.refresh_token = tokens.refresh_token
        if tokens.id_token:
            self.id_token = tokens.id_token
        self.expires_at = tokens.expires_at
        self.updated_at = utcnow()
