"""Reset password use case"""

import logging

from starlette.concurrency import run_in_threadpool

from ...core.security import hash_password
from ...domain.exceptions import InvalidToken, TokenExpired
from ...domain.repositories.unit_of_work import IUnitOfWork

logger = logging.getLogger(__name__)


class ResetPasswordUseCase:
    """Use case for resetting password with token"""

    def __init__(self, unit_of_work: IUnitOfWork):
        self.unit_of_work = unit_of_work

    async def execute(self, token: str, new_password: str) -> None:
        async with self.unit_of_work:
            user = await self.unit_of_work.users.get_by_reset_token(token)
            if not user:
                raise InvalidToken()

            if user.is_reset_token_expired():
                raise TokenExpired()

            user.reset_password(await run_in_threadpool(hash_password, new_password))
            await self.unit_of_work.users.update(user)
            await self.unit_of_work.commit()

        logger.info("Password reset for user %s", user.id)
