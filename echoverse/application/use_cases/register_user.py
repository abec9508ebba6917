"""Register user use case"""

import logging
from dataclasses import dataclass

from starlette.concurrency import run_in_threadpool

from ...core.security import hash_password
from ...domain.entities.user import StoredUser
from ...domain.enums import UserRole
from ...domain.exceptions import Conflict, ValidationError
from ...domain.repositories.unit_of_work import IUnitOfWork
from ..dtos.user_dtos import PublicUser, RegisterUserDto, to_public_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    user: PublicUser
    verification_token: str


class RegisterUserUseCase:

    def __init__(self, unit_of_work: IUnitOfWork, verification_token_hours: int = 24):
        self.unit_of_work = unit_of_work
        self.verification_token_hours = verification_token_hours

    async def execute(self, request: RegisterUserDto) -> RegistrationResult:
        role = request.role or UserRole.USER
        if role.is_privileged:
            raise ValidationError("Cannot register with a privileged role")

        async with self.unit_of_work:
            # Friendly messages first; the store still enforces uniqueness on add
            if await self.unit_of_work.users.get_by_username(request.username):
                raise Conflict("Username already exists")
            if await self.unit_of_work.users.get_by_email(request.email):
                raise Conflict("Email already exists")

            user = StoredUser.create_local(
                username=request.username,
                email=request.email,
                password_hash=await run_in_threadpool(hash_password, request.password),
                role=role
            )
            token = user.issue_verification_token(self.verification_token_hours)

            user = await self.unit_of_work.users.add(user)
            await self.unit_of_work.commit()

        logger.info("Registered user %s (%s)", user.id, user.username)
        return RegistrationResult(user=to_public_user(user), verification_token=token)
