"""Concrete persistence gateways and their selection from settings"""

import logging

from ..core.config import Settings
from ..db.database import build_engine, build_session_factory
from ..db.models import Base
from ..domain.repositories.gateway import IPersistenceGateway
from ..domain.repositories.unit_of_work import IUnitOfWork
from .repositories.memory import InMemorySessionStore, InMemoryUnitOfWork, MemoryTables
from .repositories.session_store_impl import SqlSessionStore
from .repositories.unit_of_work_impl import UnitOfWorkImpl

# Register all ORM models on Base.metadata
from . import orm  # noqa: F401

logger = logging.getLogger(__name__)


class InMemoryPersistenceGateway(IPersistenceGateway):
    """Process-local storage; everything is lost on shutdown."""

    def __init__(self):
        self.tables = MemoryTables()
        self.sessions = InMemorySessionStore(self.tables)

    def unit_of_work(self) -> IUnitOfWork:
        return InMemoryUnitOfWork(self.tables)


class SqlPersistenceGateway(IPersistenceGateway):

    def __init__(self, database_url: str):
        self.engine = build_engine(database_url)
        self.session_factory = build_session_factory(self.engine)
        self.sessions = SqlSessionStore(self.session_factory)

    def unit_of_work(self) -> IUnitOfWork:
        return UnitOfWorkImpl(self.session_factory)

    async def startup(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready on %s", self.engine.url.render_as_string(hide_password=True))

    async def shutdown(self) -> None:
        self.engine.dispose()


def build_gateway(settings: Settings) -> IPersistenceGateway:
    """SQL storage when DATABASE_URL is set, in-memory otherwise"""
    if settings.DATABASE_URL:
        return SqlPersistenceGateway(settings.DATABASE_URL)
    logger.warning("DATABASE_URL not set, using in-memory storage")
    return InMemoryPersistenceGateway()
