"""Forgot password use case"""

import logging
from dataclasses import dataclass
from typing import Optional

from ...core.emails import normalize_email
from ...domain.repositories.unit_of_work import IUnitOfWork

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "If an account with that email exists, a password reset link has been sent"


@dataclass(frozen=True)
class ResetIssued:
    """What the caller needs to mail the link. None fields mean no such user."""
    email: Optional[str] = None
    reset_token: Optional[str] = None

    @property
    def message(self) -> str:
        return GENERIC_MESSAGE


class ForgotPasswordUseCase:
    """Issues a reset token; the outcome looks identical whether or not the email is known"""

    def __init__(self, unit_of_work: IUnitOfWork, expires_in_hours: int = 1):
        self.unit_of_work = unit_of_work
        self.expires_in_hours = expires_in_hours

    async def execute(self, email: str) -> ResetIssued:
        async with self.unit_of_work:
            user = await self.unit_of_work.users.get_by_email(normalize_email(email))
            if not user:
                return ResetIssued()

            token = user.issue_password_reset_token(self.expires_in_hours)
            await self.unit_of_work.users.update(user)
            await self.unit_of_work.commit()

        logger.info("Password reset token issued for user %s", user.id)
        return ResetIssued(email=user.email, reset_token=token)
