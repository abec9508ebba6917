"""The SQLAlchemy-backed gateway against an in-memory SQLite database"""

import asyncio
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from conftest import PASSWORD, RecordingEmailService, assert_no_password, make_settings, register

from echoverse.application.services.identity_resolver import IdentityResolver
from echoverse.application.services.session_manager import SessionManager
from echoverse.core.clock import utcnow
from echoverse.core.security import hash_password
from echoverse.domain.entities.account import Account
from echoverse.domain.entities.session import Session
from echoverse.domain.entities.user import StoredUser
from echoverse.domain.enums import AuthProvider, UserRole
from echoverse.domain.exceptions import Conflict
from echoverse.domain.value_objects.credentials import (
    LocalCredentials,
    OAuthCredentials,
    OAuthProfile,
    OAuthTokens,
)
from echoverse.domain.value_objects.entity_ids import UserId
from echoverse.infrastructure.gateway import SqlPersistenceGateway, build_gateway, InMemoryPersistenceGateway
from echoverse.main import create_app


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def gateway():
    sql_gateway = SqlPersistenceGateway("sqlite://")
    run(sql_gateway.startup())
    yield sql_gateway
    run(sql_gateway.shutdown())


def add_user(gateway, username="alice", email="a@x.com", password=PASSWORD):
    async def _add():
        async with gateway.unit_of_work() as uow:
            return await uow.users.add(StoredUser.create_local(username, email, hash_password(password)))
    return run(_add())


def get_user(gateway, user_id):
    async def _get():
        async with gateway.unit_of_work() as uow:
            return await uow.users.get_by_id(UserId(user_id))
    return run(_get())


def test_build_gateway_follows_database_url():
    assert isinstance(build_gateway(make_settings(DATABASE_URL="sqlite://")), SqlPersistenceGateway)
    assert isinstance(build_gateway(make_settings()), InMemoryPersistenceGateway)


class TestUserRepository:

    def test_round_trip_keeps_all_fields(self, gateway):
        stored = add_user(gateway)

        async def _update():
            async with gateway.unit_of_work() as uow:
                user = await uow.users.get_by_id(stored.id)
                user.update_profile({"bio": "hello", "preferences": {"theme": "dark"}})
                user.role = UserRole.EDUCATOR
                user.issue_password_reset_token(1)
                await uow.users.update(user)
                await uow.commit()
        run(_update())

        loaded = get_user(gateway, stored.id.value)
        assert loaded.username == "alice"
        assert loaded.bio == "hello"
        assert loaded.preferences == {"theme": "dark"}
        assert loaded.role == UserRole.EDUCATOR
        assert loaded.reset_password_token is not None
        assert loaded.reset_password_expires > utcnow()

    def test_lookups(self, gateway):
        stored = add_user(gateway)

        async def _lookups():
            async with gateway.unit_of_work() as uow:
                return (
                    await uow.users.get_by_username("alice"),
                    await uow.users.get_by_email("a@x.com"),
                    await uow.users.get_by_username("nobody"),
                )
        by_name, by_email, missing = run(_lookups())
        assert by_name.id == by_email.id == stored.id
        assert missing is None

    @pytest.mark.parametrize("username, email, message", [
        ("alice", "other@x.com", "Username already exists"),
        ("bob", "a@x.com", "Email already exists"),
    ])
    def test_unique_username_and_email(self, gateway, username, email, message):
        add_user(gateway)
        with pytest.raises(Conflict) as excinfo:
            add_user(gateway, username=username, email=email)
        assert excinfo.value.message == message

    def test_failed_unit_of_work_leaves_nothing_behind(self, gateway):
        async def _fails():
            async with gateway.unit_of_work() as uow:
                await uow.users.add(StoredUser.create_local("ghost", "g@x.com", "d.s"))
                raise RuntimeError("boom")
        with pytest.raises(RuntimeError):
            run(_fails())

        async def _lookup():
            async with gateway.unit_of_work() as uow:
                return await uow.users.get_by_username("ghost")
        assert run(_lookup()) is None


class TestAccountRepository:

    def test_provider_pair_is_unique(self, gateway):
        alice = add_user(gateway)
        bob = add_user(gateway, username="bob", email="b@x.com")
        tokens = OAuthTokens(access_token="at")

        async def _link(user):
            async with gateway.unit_of_work() as uow:
                await uow.accounts.add(Account.link(user.id, AuthProvider.GOOGLE, "g-1", tokens))
                await uow.commit()

        run(_link(alice))
        with pytest.raises(Conflict):
            run(_link(bob))

    def test_lookup_and_token_refresh(self, gateway):
        alice = add_user(gateway)

        async def _flow():
            async with gateway.unit_of_work() as uow:
                await uow.accounts.add(Account.link(alice.id, AuthProvider.GITHUB, 42, OAuthTokens(access_token="old")))
                await uow.commit()
            async with gateway.unit_of_work() as uow:
                account = await uow.accounts.get_by_provider(AuthProvider.GITHUB, "42")
                account.refresh_tokens(OAuthTokens(access_token="new"))
                await uow.accounts.update(account)
                await uow.commit()
            async with gateway.unit_of_work() as uow:
                return await uow.accounts.list_for_user(alice.id)

        [account] = run(_flow())
        assert account.provider == AuthProvider.GITHUB
        assert account.provider_account_id == "42"
        assert account.access_token == "new"


class TestSessionStore:

    def test_set_get_destroy(self, gateway):
        alice = add_user(gateway)
        session = Session.start(alice.id, timedelta(days=30))

        run(gateway.sessions.set(session))
        loaded = run(gateway.sessions.get(session.id))
        assert loaded.user_id == alice.id
        assert loaded.expires_at == session.expires_at

        run(gateway.sessions.destroy(session.id))
        assert run(gateway.sessions.get(session.id)) is None

    def test_prune_expired(self, gateway):
        alice = add_user(gateway)
        live = Session.start(alice.id, timedelta(days=30))
        dead = Session.start(alice.id, timedelta(minutes=-1))
        for session in (live, dead):
            run(gateway.sessions.set(session))

        assert run(gateway.sessions.prune_expired(utcnow())) == 1
        assert run(gateway.sessions.get(live.id)) is not None
        assert run(gateway.sessions.get(dead.id)) is None

    def test_session_manager_over_sql(self, gateway):
        alice = add_user(gateway)
        resolver = IdentityResolver(gateway.unit_of_work)
        manager = SessionManager(gateway.sessions, gateway.unit_of_work, max_age=timedelta(days=30))

        user = run(resolver.resolve(LocalCredentials("alice", PASSWORD)))
        session = run(manager.login(user))

        assert run(manager.require_authenticated(session.id)).id == alice.id.value
        run(manager.logout(session.id))
        assert run(manager.current_user(session.id)) is None


def test_oauth_linking_over_sql(gateway):
    alice = add_user(gateway)
    resolver = IdentityResolver(gateway.unit_of_work)
    credentials = OAuthCredentials(
        provider=AuthProvider.GOOGLE,
        profile=OAuthProfile(provider_account_id="g-1", email="a@x.com"),
        tokens=OAuthTokens(access_token="at-1")
    )

    first = run(resolver.resolve(credentials))
    second = run(resolver.resolve(credentials))

    assert first.id == second.id == alice.id.value

    async def _accounts():
        async with gateway.unit_of_work() as uow:
            return await uow.accounts.list_for_user(alice.id)
    assert len(run(_accounts())) == 1


def test_api_over_sql_storage(gateway):
    settings = make_settings()
    app = create_app(settings=settings, gateway=gateway, email_service=RecordingEmailService(settings),
                     oauth_clients={})
    with TestClient(app) as client:
        created = register(client)
        assert created.status_code == 201
        assert_no_password(created.json())
        assert register(client).status_code == 400

        client.cookies.clear()
        login = client.post("/api/login", json={"username": "alice", "password": PASSWORD})
        assert login.status_code == 200
        assert client.get("/api/user").json()["email"] == "a@x.com"

        client.post("/api/logout")
        assert client.get("/api/user").status_code == 401


def test_rejected_profile_update_leaves_sql_row_intact(gateway):
    settings = make_settings()
    app = create_app(settings=settings, gateway=gateway, email_service=RecordingEmailService(settings),
                     oauth_clients={})
    with TestClient(app) as client:
        register(client)

        response = client.patch("/api/user", json={"onboardingStep": None, "bio": "x"})
        assert response.status_code == 400
        assert response.json()["message"] != "Username or email already exists"

        me = client.get("/api/user").json()
        assert me["onboardingStep"] == 1
        assert me["bio"] is None
