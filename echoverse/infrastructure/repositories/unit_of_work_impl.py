"""Unit of Work over SQLAlchemy: one database session per ``async with`` block"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ...domain.repositories.unit_of_work import IUnitOfWork
from .account_repository_impl import AccountRepositoryImpl
from .user_repository_impl import UserRepositoryImpl

logger = logging.getLogger(__name__)


class UnitOfWorkImpl(IUnitOfWork):
    """Repositories are bound on enter. Leaving the block commits whatever is
    still pending, or rolls it back if the block raised, and always releases
    the connection.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self.session: Optional[Session] = None
        self.users = None
        self.accounts = None

    async def __aenter__(self) -> "UnitOfWorkImpl":
        self.session = self.session_factory()
        self.users = UserRepositoryImpl(self.session)
        self.accounts = AccountRepositoryImpl(self.session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None:
                await self.rollback()
            elif self.session.in_transaction():
                await self.commit()
        finally:
            self.session.close()
            self.session = None

    async def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            logger.exception("Commit failed, rolling back")
            self.session.rollback()
            raise

    async def rollback(self) -> None:
        self.session.rollback()
