"""Identity resolver: maps a presented credential to a canonical user.

Local (username/password) and OAuth (Google, GitHub) credentials are plain
data; ``IdentityResolver.resolve`` picks the strategy from the credential
type. Every path returns a ``PublicUser``; stored records with their password
hash never leave this module.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

from starlette.concurrency import run_in_threadpool

from ...core.security import generate_token, hash_password, verify_password
from ...domain.entities.account import Account
from ...domain.entities.user import StoredUser
from ...domain.exceptions import EmailNotProvided, InvalidCredentials, LinkingNotAllowed, UpstreamFailure
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.credentials import Credentials, LocalCredentials, OAuthCredentials
from ..dtos.user_dtos import PublicUser, to_public_user

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _decoy_hash() -> str:
    """A hash nobody knows the password to"""
    return hash_password(generate_token())


def _check_password(password: str, stored_hash: Optional[str]) -> bool:
    """Unknown users and social-only users cost one scrypt run too"""
    if stored_hash is None:
        verify_password(password, _decoy_hash())
        return False
    return verify_password(password, stored_hash)


@dataclass(frozen=True)
class LinkingPolicy:
    """Whether an OAuth login may attach itself to an existing user found by email.

    With ``require_verified_email`` unset, any user with a matching email is
    linked silently. Set it to refuse linking onto accounts whose email
    ownership was never proven.
    """
    require_verified_email: bool = False

    def allows(self, user: StoredUser) -> bool:
        return user.email_verified or not self.require_verified_email


class IdentityResolver:

    def __init__(self, unit_of_work_factory: Callable[[], IUnitOfWork], policy: LinkingPolicy = LinkingPolicy()):
        self.unit_of_work_factory = unit_of_work_factory
        self.policy = policy

    async def resolve(self, credentials: Credentials) -> PublicUser:
        if isinstance(credentials, LocalCredentials):
            return await self.resolve_local(credentials)
        if isinstance(credentials, OAuthCredentials):
            return await self.resolve_oauth(credentials)
        raise TypeError(f"Unsupported credentials: {type(credentials).__name__}")

    async def resolve_local(self, credentials: LocalCredentials) -> PublicUser:
        async with self.unit_of_work_factory() as uow:
            user = await uow.users.get_by_username(credentials.username)
            stored_hash = user.password if user and user.has_password else None

            if not await run_in_threadpool(_check_password, credentials.password, stored_hash):
                logger.info("Login rejected for username %r", credentials.username)
                raise InvalidCredentials()

            user.record_login()
            await uow.users.update(user)
            await uow.commit()

            return to_public_user(user)

    async def resolve_oauth(self, credentials: OAuthCredentials) -> PublicUser:
        provider = credentials.provider
        profile = credentials.profile

        async with self.unit_of_work_factory() as uow:
            # 1. Known external identity
            account = await uow.accounts.get_by_provider(provider, profile.provider_account_id)
            if account:
                user = await uow.users.get_by_id(account.user_id)
                if not user:
                    raise UpstreamFailure("User not found")

                account.refresh_tokens(credentials.tokens)
                await uow.accounts.update(account)
                user.record_login()
                await uow.users.update(user)
                await uow.commit()
                return to_public_user(user)

            if not profile.email:
                raise EmailNotProvided(f"Email not provided by {provider.value.capitalize()}")

            # 2. Existing user with the same email: link the new identity to it
            user = await uow.users.get_by_email(profile.email)
            if user:
                if not self.policy.allows(user):
                    logger.warning(
                        "Refused to link %s identity %s to unverified user %s",
                        provider.value, profile.provider_account_id, user.id
                    )
                    raise LinkingNotAllowed()

                await uow.accounts.add(Account.link(user.id, provider, profile.provider_account_id, credentials.tokens))
                user.record_login()
                await uow.users.update(user)
                await uow.commit()
                logger.info("Linked %s identity %s to user %s", provider.value, profile.provider_account_id, user.id)
                return to_public_user(user)

            # 3. First sighting: new user plus account
            user = await uow.users.add(StoredUser.create_from_oauth(provider, profile))
            await uow.accounts.add(Account.link(user.id, provider, profile.provider_account_id, credentials.tokens))
            await uow.commit()
            logger.info("Created user %s from %s identity %s", user.id, provider.value, profile.provider_account_id)
            return to_public_user(user)
