"""Account repository implementation backed by SQLAlchemy"""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...domain.entities.account import Account
from ...domain.enums import AuthProvider
from ...domain.exceptions import Conflict
from ...domain.repositories.account_repository import IAccountRepository
from ...domain.value_objects.entity_ids import UserId
from ..orm.account_model import AccountModel


class AccountRepositoryImpl(IAccountRepository):

    def __init__(self, session: Session):
        self.session = session

    async def get_by_provider(self, provider: AuthProvider, provider_account_id: str) -> Optional[Account]:
        model = self.session.query(AccountModel).filter(
            AccountModel.provider == provider,
            AccountModel.provider_account_id == str(provider_account_id)
        ).first()
        return self._map_to_entity(model) if model else None

    async def list_for_user(self, user_id: UserId) -> List[Account]:
        models = self.session.query(AccountModel).filter(
            AccountModel.user_id == user_id.value
        ).order_by(AccountModel.id).all()
        return [self._map_to_entity(model) for model in models]

    async def add(self, account: Account) -> Account:
        model = AccountModel(
            user_id=account.user_id.value,
            provider=account.provider,
            provider_account_id=account.provider_account_id,
            access_token=account.access_token,
            refresh_token=account.refresh_token,
            id_token=account.id_token,
            expires_at=account.expires_at,
            created_at=account.created_at,
            updated_at=account.updated_at
        )
        self.session.add(model)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            raise Conflict(f"This {account.provider.value} account is already linked to another user")

        account.id = model.id
        return account

    async def update(self, account: Account) -> Account:
        model = self.session.get(AccountModel, account.id)
        if model:
            model.access_token = account.access_token
            model.refresh_token = account.refresh_token
            model.id_token = account.id_token
            model.expires_at = account.expires_at
            model.updated_at = account.updated_at
            self.session.flush()
        return account

    def _map_to_entity(self, model: AccountModel) -> Account:
        return Account(
            id=model.id,
            user_id=UserId(model.user_id),
            provider=AuthProvider(model.provider),
            provider_account_id=model.provider_account_id,
            access_token=model.access_token,
            refresh_token=model.refresh_token,
            id_token=model.id_token,
            expires_at=model.expires_at,
            created_at=model.created_at,
            updated_at=model.updated_at
        )
