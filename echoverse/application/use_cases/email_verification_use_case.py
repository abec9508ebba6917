"""Email verification use case"""

import logging

from ...domain.exceptions import InvalidToken, TokenExpired
from ...domain.repositories.unit_of_work import IUnitOfWork

logger = logging.getLogger(__name__)


class EmailVerificationUseCase:

    def __init__(self, unit_of_work: IUnitOfWork):
        self.unit_of_work = unit_of_work

    async def execute(self, token: str) -> None:
        """Verify user email with a single-use token"""
        if not token:
            raise InvalidToken("Invalid token")

        async with self.unit_of_work:
            user = await self.unit_of_work.users.get_by_verification_token(token)
            if not user:
                raise InvalidToken()

            if user.is_verification_token_expired():
                raise TokenExpired("Verification link has expired")

            user.verify_email()
            await self.unit_of_work.users.update(user)
            await self.unit_of_work.commit()

        logger.info("Email verified for user %s", user.id)
