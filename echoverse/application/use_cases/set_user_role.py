"""Admin-only role assignment"""

import logging

from ...domain.exceptions import NotFound
from ...domain.enums import UserRole
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import UserId
from ..dtos.user_dtos import PublicUser, to_public_user

logger = logging.getLogger(__name__)


class SetUserRoleUseCase:

    def __init__(self, unit_of_work: IUnitOfWork):
        self.unit_of_work = unit_of_work

    async def execute(self, actor: PublicUser, user_id: int, role: UserRole) -> PublicUser:
        async with self.unit_of_work:
            user = await self.unit_of_work.users.get_by_id(UserId(user_id))
            if not user:
                raise NotFound("User not found")

            user.change_role(role, actor.role)
            await self.unit_of_work.users.update(user)
            await self.unit_of_work.commit()

        logger.info("User %s set role of user %s to %s", actor.id, user_id, role.value)
        return to_public_user(user)
