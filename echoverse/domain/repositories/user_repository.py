"""User repository interface"""

from abc import ABC, abstractmethod
from typing import Optional

from ..entities.user import StoredUser
from ..value_objects.entity_ids import UserId


class IUserRepository(ABC):
    """Lookups return None for absence and never raise for it."""

    @abstractmethod
    async def get_by_id(self, user_id: UserId) -> Optional[StoredUser]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[StoredUser]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[StoredUser]:
        pass

    @abstractmethod
    async def get_by_verification_token(self, token: str) -> Optional[StoredUser]:
        """Get user by email verification token"""
        pass

    @abstractmethod
    async def get_by_reset_token(self, token: str) -> Optional[StoredUser]:
        """Get user by password reset token, expired or not"""
        pass

    @abstractmethod
    async def add(self, user: StoredUser) -> StoredUser:
        """Persist a new user and return it with its assigned id.

        Raises Conflict when the username or email is taken.
        """
        pass

    @abstractmethod
    async def update(self, user: StoredUser) -> StoredUser:
        pass
