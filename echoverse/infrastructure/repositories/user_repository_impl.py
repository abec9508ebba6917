"""User repository implementation backed by SQLAlchemy"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...domain.entities.user import StoredUser
from ...domain.enums import UserRole
from ...domain.exceptions import Conflict
from ...domain.repositories.user_repository import IUserRepository
from ...domain.value_objects.entity_ids import UserId
from ..orm.user_model import UserModel


# Columns copied verbatim between entity and model
_COLUMNS = (
    'username',
    'email',
    'password',
    'email_verified',
    'verification_token',
    'verification_token_expires_at',
    'full_name',
    'first_name',
    'last_name',
    'avatar',
    'bio',
    'onboarding_step',
    'onboarding_completed',
    'stripe_customer_id',
    'stripe_subscription_id',
    'subscription_tier',
    'reset_password_token',
    'reset_password_expires',
    'last_login_at',
    'created_at',
    'updated_at',
)


class UserRepositoryImpl(IUserRepository):
    """Repository implementation for the User aggregate"""

    def __init__(self, session: Session):
        self.session = session

    async def get_by_id(self, user_id: UserId) -> Optional[StoredUser]:
        model = self.session.get(UserModel, user_id.value)
        return self._map_to_entity(model) if model else None

    async def get_by_username(self, username: str) -> Optional[StoredUser]:
        model = self.session.query(UserModel).filter(UserModel.username == username).first()
        return self._map_to_entity(model) if model else None

    async def get_by_email(self, email: str) -> Optional[StoredUser]:
        model = self.session.query(UserModel).filter(UserModel.email == email).first()
        return self._map_to_entity(model) if model else None

    async def get_by_verification_token(self, token: str) -> Optional[StoredUser]:
        model = self.session.query(UserModel).filter(UserModel.verification_token == token).first()
        return self._map_to_entity(model) if model else None

    async def get_by_reset_token(self, token: str) -> Optional[StoredUser]:
        # Expiry is checked by the caller so an expired token can be told apart
        model = self.session.query(UserModel).filter(UserModel.reset_password_token == token).first()
        return self._map_to_entity(model) if model else None

    async def add(self, user: StoredUser) -> StoredUser:
        """Add a new user"""
        if self.session.query(UserModel.id).filter(UserModel.username == user.username).first():
            raise Conflict("Username already exists")
        if self.session.query(UserModel.id).filter(UserModel.email == user.email).first():
            raise Conflict("Email already exists")

        model = UserModel(**self._model_data(user))
        self.session.add(model)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            raise Conflict("Username or email already exists")

        user.id = UserId(model.id)
        return user

    async def update(self, user: StoredUser) -> StoredUser:
        """Update an existing user"""
        model = self.session.get(UserModel, user.id.value)
        if model is None:
            return user
        for name, value in self._model_data(user).items():
            setattr(model, name, value)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            raise Conflict("Username or email already exists")
        return user

    def _model_data(self, user: StoredUser) -> dict:
        data = {name: getattr(user, name) for name in _COLUMNS}
        data['role'] = user.role
        data['preferences'] = dict(user.preferences or {})
        return data

    def _map_to_entity(self, model: UserModel) -> StoredUser:
        """Map ORM model to domain entity"""
        data = {name: getattr(model, name) for name in _COLUMNS}
        return StoredUser(
            id=UserId(model.id),
            role=UserRole(model.role),
            preferences=dict(model.preferences or {}),
            **data
        )
