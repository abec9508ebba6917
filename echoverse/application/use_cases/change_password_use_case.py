"""Change password use case"""

from starlette.concurrency import run_in_threadpool

from ...core.security import hash_password, verify_password
from ...domain.exceptions import InvalidCredentials, NoPasswordSet, Unauthorized
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import UserId


class ChangePasswordUseCase:

    def __init__(self, unit_of_work: IUnitOfWork):
        self.unit_of_work = unit_of_work

    async def execute(self, user_id: int, current_password: str, new_password: str) -> None:
        async with self.unit_of_work:
            user = await self.unit_of_work.users.get_by_id(UserId(user_id))
            if not user:
                raise Unauthorized()
            if not user.has_password:
                raise NoPasswordSet()

            if not await run_in_threadpool(verify_password, current_password, user.password):
                raise InvalidCredentials("Current password is incorrect")

            user.change_password(await run_in_threadpool(hash_password, new_password))
            await self.unit_of_work.users.update(user)
            await self.unit_of_work.commit()
