"""Session store implementation backed by SQLAlchemy"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import sessionmaker

from ...domain.entities.session import Session
from ...domain.repositories.session_store import ISessionStore
from ...domain.value_objects.entity_ids import UserId
from ..orm.session_model import SessionModel


class SqlSessionStore(ISessionStore):
    """Each call runs in its own short-lived database session."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def get(self, session_id: str) -> Optional[Session]:
        with self.session_factory() as db:
            model = db.get(SessionModel, session_id)
            if model is None:
                return None
            return Session(
                id=model.id,
                user_id=UserId(model.user_id),
                expires_at=model.expires_at,
                created_at=model.created_at
            )

    async def set(self, session: Session) -> None:
        with self.session_factory() as db:
            db.merge(SessionModel(
                id=session.id,
                user_id=session.user_id.value,
                expires_at=session.expires_at,
                created_at=session.created_at
            ))
            db.commit()

    async def destroy(self, session_id: str) -> None:
        with self.session_factory() as db:
            db.query(SessionModel).filter(SessionModel.id == session_id).delete()
            db.commit()

    async def prune_expired(self, now: datetime) -> int:
        with self.session_factory() as db:
            removed = db.query(SessionModel).filter(SessionModel.expires_at <= now).delete()
            db.commit()
            return removed
