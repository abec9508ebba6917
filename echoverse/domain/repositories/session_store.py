"""Session store interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..entities.session import Session


class ISessionStore(ABC):

    @abstractmethod
    async def get(self, session_id: str) -> Optional[Session]:
        pass

    @abstractmethod
    async def set(self, session: Session) -> None:
        pass

    @abstractmethod
    async def destroy(self, session_id: str) -> None:
        pass

    @abstractmethod
    async def prune_expired(self, now: datetime) -> int:
        """Delete expired sessions and return how many were removed"""
        pass
