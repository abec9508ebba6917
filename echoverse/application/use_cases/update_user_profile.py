"""Update user profile use case"""

from ...domain.exceptions import NotFound
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import UserId
from ..dtos.user_dtos import PublicUser, UpdateProfileDto, to_public_user


class UpdateUserProfileUseCase:

    def __init__(self, unit_of_work: IUnitOfWork):
        self.unit_of_work = unit_of_work

    async def execute(self, actor: PublicUser, request: UpdateProfileDto) -> PublicUser:
        """Update the actor's own profile. A role change is honoured only for admins."""
        async with self.unit_of_work:
            user = await self.unit_of_work.users.get_by_id(UserId(actor.id))
            if not user:
                raise NotFound("User not found")

            user.update_profile(request.profile_changes())
            if request.role is not None and actor.role.is_privileged:
                user.change_role(request.role, actor.role)

            await self.unit_of_work.users.update(user)
            await self.unit_of_work.commit()

            return to_public_user(user)
