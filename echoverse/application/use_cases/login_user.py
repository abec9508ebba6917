"""Login user use case"""

from ...domain.value_objects.credentials import LocalCredentials
from ..dtos.user_dtos import LoginUserDto, PublicUser
from ..services.identity_resolver import IdentityResolver


class LoginUserUseCase:

    def __init__(self, resolver: IdentityResolver):
        self.resolver = resolver

    async def execute(self, request: LoginUserDto) -> PublicUser:
        return await self.resolver.resolve(LocalCredentials(username=request.username, password=request.password))
