"""Account repository interface"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..entities.account import Account
from ..enums import AuthProvider
from ..value_objects.entity_ids import UserId


class IAccountRepository(ABC):

    @abstractmethod
    async def get_by_provider(self, provider: AuthProvider, provider_account_id: str) -> Optional[Account]:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: UserId) -> List[Account]:
        pass

    @abstractmethod
    async def add(self, account: Account) -> Account:
        """Raises Conflict when (provider, provider_account_id) is already linked."""
        pass

    @abstractmethod
    async def update(self, account: Account) -> Account:
        pass
