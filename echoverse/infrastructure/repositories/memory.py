"""In-memory storage used in development and tests.

Rows are stored as copies so callers never share mutable state with the
store. Writes are applied immediately; each row write is atomic, and there is
no cross-row transaction to roll back.
"""

import asyncio
from copy import deepcopy
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ...domain.entities.account import Account
from ...domain.entities.session import Session
from ...domain.entities.user import StoredUser
from ...domain.enums import AuthProvider
from ...domain.exceptions import Conflict
from ...domain.repositories.account_repository import IAccountRepository
from ...domain.repositories.session_store import ISessionStore
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.repositories.user_repository import IUserRepository
from ...domain.value_objects.entity_ids import UserId


class MemoryTables:
    """Backing dictionaries plus id counters"""

    def __init__(self):
        self.users: Dict[int, StoredUser] = {}
        self.accounts: Dict[int, Account] = {}
        self.sessions: Dict[str, Session] = {}
        self.next_user_id = 1
        self.next_account_id = 1
        self.lock = asyncio.Lock()


class InMemoryUserRepository(IUserRepository):

    def __init__(self, tables: MemoryTables):
        self.tables = tables

    def _find(self, **criteria) -> Optional[StoredUser]:
        for user in self.tables.users.values():
            if all(getattr(user, name) == value for name, value in criteria.items()):
                return deepcopy(user)
        return None

    async def get_by_id(self, user_id: UserId) -> Optional[StoredUser]:
        user = self.tables.users.get(user_id.value)
        return deepcopy(user) if user else None

    async def get_by_username(self, username: str) -> Optional[StoredUser]:
        return self._find(username=username)

    async def get_by_email(self, email: str) -> Optional[StoredUser]:
        return self._find(email=email)

    async def get_by_verification_token(self, token: str) -> Optional[StoredUser]:
        return self._find(verification_token=token) if token else None

    async def get_by_reset_token(self, token: str) -> Optional[StoredUser]:
        return self._find(reset_password_token=token) if token else None

    def _check_unique(self, user: StoredUser) -> None:
        for other in self.tables.users.values():
            if user.id is not None and other.id == user.id:
                continue
            if other.username == user.username:
                raise Conflict("Username already exists")
            if other.email == user.email:
                raise Conflict("Email already exists")

    async def add(self, user: StoredUser) -> StoredUser:
        async with self.tables.lock:
            self._check_unique(user)
            user.id = UserId(self.tables.next_user_id)
            self.tables.next_user_id += 1
            self.tables.users[user.id.value] = deepcopy(user)
        return user

    async def update(self, user: StoredUser) -> StoredUser:
        async with self.tables.lock:
            if user.id is None or user.id.value not in self.tables.users:
                return user
            self._check_unique(user)
            self.tables.users[user.id.value] = deepcopy(user)
        return user


class InMemoryAccountRepository(IAccountRepository):

    def __init__(self, tables: MemoryTables):
        self.tables = tables

    def _key(self, account: Account) -> Tuple[AuthProvider, str]:
        return account.provider, account.provider_account_id

    async def get_by_provider(self, provider: AuthProvider, provider_account_id: str) -> Optional[Account]:
        for account in self.tables.accounts.values():
            if self._key(account) == (provider, str(provider_account_id)):
                return deepcopy(account)
        return None

    async def list_for_user(self, user_id: UserId) -> List[Account]:
        return [
            deepcopy(account)
            for account in sorted(self.tables.accounts.values(), key=lambda a: a.id)
            if account.user_id == user_id
        ]

    async def add(self, account: Account) -> Account:
        async with self.tables.lock:
            if any(self._key(other) == self._key(account) for other in self.tables.accounts.values()):
                raise Conflict(f"This {account.provider.value} account is already linked to another user")
            account.id = self.tables.next_account_id
            self.tables.next_account_id += 1
            self.tables.accounts[account.id] = deepcopy(account)
        return account

    async def update(self, account: Account) -> Account:
        if account.id in self.tables.accounts:
            self.tables.accounts[account.id] = deepcopy(account)
        return account


class InMemoryUnitOfWork(IUnitOfWork):

    def __init__(self, tables: MemoryTables):
        self.users = InMemoryUserRepository(tables)
        self.accounts = InMemoryAccountRepository(tables)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass


class InMemorySessionStore(ISessionStore):

    def __init__(self, tables: MemoryTables):
        self.tables = tables

    async def get(self, session_id: str) -> Optional[Session]:
        session = self.tables.sessions.get(session_id)
        return deepcopy(session) if session else None

    async def set(self, session: Session) -> None:
        self.tables.sessions[session.id] = deepcopy(session)

    async def destroy(self, session_id: str) -> None:
        self.tables.sessions.pop(session_id, None)

    async def prune_expired(self, now: datetime) -> int:
        expired = [sid for sid, session in self.tables.sessions.items() if session.is_expired(now)]
        for sid in expired:
            del self.tables.sessions[sid]
        return len(expired)
