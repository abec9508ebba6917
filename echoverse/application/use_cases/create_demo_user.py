"""Demo account bootstrap for non-production environments"""

from starlette.concurrency import run_in_threadpool

from ...core.security import hash_password
from ...domain.entities.user import StoredUser
from ...domain.repositories.unit_of_work import IUnitOfWork

DEMO_USERNAME = "demo_user"
DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "Demo@123"


class CreateDemoUserUseCase:

    def __init__(self, unit_of_work: IUnitOfWork):
        self.unit_of_work = unit_of_work

    async def execute(self) -> bool:
        """Create the demo user; returns False when it already exists"""
        async with self.unit_of_work:
            if await self.unit_of_work.users.get_by_username(DEMO_USERNAME):
                return False

            user = StoredUser.create_local(
                username=DEMO_USERNAME,
                email=DEMO_EMAIL,
                password_hash=await run_in_threadpool(hash_password, DEMO_PASSWORD)
            )
            user.email_verified = True
            user.onboarding_completed = True
            user.onboarding_step = 5

            await self.unit_of_work.users.add(user)
            await self.unit_of_work.commit()
            return True
