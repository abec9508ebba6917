"""Persistence gateway interface: the storage collaborator of the auth subsystem"""

from abc import ABC, abstractmethod

from .session_store import ISessionStore
from .unit_of_work import IUnitOfWork


class IPersistenceGateway(ABC):
    """Constructed once at application startup and injected where needed."""

    sessions: ISessionStore

    @abstractmethod
    def unit_of_work(self) -> IUnitOfWork:
        """A fresh unit of work over the user and account repositories"""
        pass

    async def startup(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass
