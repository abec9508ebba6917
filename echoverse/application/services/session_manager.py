"""Session manager: binds authenticated users to server-side sessions"""

import logging
from datetime import timedelta
from typing import Callable, Optional

from ...core.clock import utcnow
from ...domain.entities.session import Session
from ...domain.enums import UserRole
from ...domain.exceptions import Forbidden, Unauthorized
from ...domain.repositories.session_store import ISessionStore
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import UserId
from ..dtos.user_dtos import PublicUser, to_public_user

logger = logging.getLogger(__name__)


class SessionManager:
    """Only the user id is kept in the session; the user is reloaded on every request."""

    def __init__(
        self,
        store: ISessionStore,
        unit_of_work_factory: Callable[[], IUnitOfWork],
        max_age: timedelta = timedelta(days=30)
    ):
        self.store = store
        self.unit_of_work_factory = unit_of_work_factory
        self.max_age = max_age

    async def login(self, user: PublicUser) -> Session:
        session = Session.start(UserId(user.id), self.max_age)
        await self.store.set(session)
        return session

    async def current_user(self, session_id: Optional[str]) -> Optional[PublicUser]:
        if not session_id:
            return None

        session = await self.store.get(session_id)
        if session is None:
            return None
        if session.is_expired():
            await self.store.destroy(session_id)
            return None

        async with self.unit_of_work_factory() as uow:
            user = await uow.users.get_by_id(session.user_id)

        if user is None:
            await self.store.destroy(session_id)
            return None
        return to_public_user(user)

    async def logout(self, session_id: Optional[str]) -> None:
        if session_id:
            await self.store.destroy(session_id)

    async def require_authenticated(self, session_id: Optional[str]) -> PublicUser:
        user = await self.current_user(session_id)
        if user is None:
            raise Unauthorized()
        return user

    @staticmethod
    def require_role(user: PublicUser, role: UserRole) -> PublicUser:
        """Admins satisfy every role; anyone else needs an exact match"""
        if user.role == UserRole.ADMIN or user.role == role:
            return user
        raise Forbidden()

    async def prune_expired(self) -> int:
        removed = await self.store.prune_expired(utcnow())
        if removed:
            logger.info("Pruned %d expired sessions", removed)
        return removed
