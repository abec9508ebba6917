"""Account ORM Model"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ...db.models import Base
from ...domain.enums import AuthProvider


class AccountModel(Base):
    __tablename__ = 'accounts'
    __table_args__ = (
        UniqueConstraint('provider', 'provider_account_id', name='uq_accounts_provider_account'),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    provider = Column(
        SQLEnum(AuthProvider, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    provider_account_id = Column(String(255), nullable=False)
    access_token = Column(String, nullable=True)
    refresh_token = Column(String, nullable=True)
    id_token = Column(String, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship('UserModel', back_populates='accounts')
