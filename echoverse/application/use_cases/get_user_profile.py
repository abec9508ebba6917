"""User lookup use cases"""

from typing import List

from ...domain.exceptions import NotFound
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import UserId
from ..dtos.user_dtos import LinkedAccountDto, PublicUser, to_public_user


class GetUserProfileUseCase:

    def __init__(self, unit_of_work: IUnitOfWork):
        self.unit_of_work = unit_of_work

    async def execute(self, username: str) -> PublicUser:
        """Get a public profile by username"""
        async with self.unit_of_work:
            user = await self.unit_of_work.users.get_by_username(username)
            if not user:
                raise NotFound("User not found")
            return to_public_user(user)


class ListLinkedAccountsUseCase:

    def __init__(self, unit_of_work: IUnitOfWork):
        self.unit_of_work = unit_of_work

    async def execute(self, user_id: int) -> List[LinkedAccountDto]:
        async with self.unit_of_work:
            accounts = await self.unit_of_work.accounts.list_for_user(UserId(user_id))
            return [LinkedAccountDto.from_entity(account) for account in accounts]
