"""OAuth login use case (Google, GitHub)"""

import secrets

from ..dtos.user_dtos import PublicUser
from ..services.identity_resolver import IdentityResolver


class OAuthLoginUseCase:
    """Redirect to the provider, then resolve the callback ``code`` to a user"""

    def __init__(self, provider_client, resolver: IdentityResolver):
        self.provider_client = provider_client
        self.resolver = resolver

    @staticmethod
    def new_state() -> str:
        return secrets.token_urlsafe(24)

    def get_authorization_url(self, state: str) -> str:
        return self.provider_client.authorization_url(state)

    async def handle_callback(self, code: str) -> PublicUser:
        credentials = await self.provider_client.fetch_credentials(code)
        return await self.resolver.resolve(credentials)
