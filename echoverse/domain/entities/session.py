"""Server-side session record"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from ...core.clock import utcnow
from ...core.security import generate_session_id
from ..value_objects.entity_ids import UserId


@dataclass
class Session:
    id: str
    user_id: UserId
    expires_at: datetime
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def start(cls, user_id: UserId, max_age: timedelta) -> 'Session':
        now = utcnow()
        return cls(id=generate_session_id(), user_id=user_id, expires_at=now + max_age, created_at=now)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires_at
