"""Shared fixtures: an app wired to in-memory storage, a recording mailer and fake OAuth providers"""

import pytest
from fastapi.testclient import TestClient

from echoverse.core.config import Settings
from echoverse.domain.enums import AuthProvider
from echoverse.domain.value_objects.credentials import OAuthCredentials, OAuthProfile, OAuthTokens
from echoverse.infrastructure.external_services.email_service import EmailService
from echoverse.infrastructure.gateway import InMemoryPersistenceGateway
from echoverse.main import create_app

PASSWORD = "Secret123"


class RecordingEmailService(EmailService):
    """Keeps outgoing mail in memory instead of talking SMTP"""

    def __init__(self, settings):
        super().__init__(settings)
        self.verification_emails = []
        self.reset_emails = []

    async def send_verification_email(self, to_email, verification_token):
        self.verification_emails.append((to_email, verification_token))
        return True

    async def send_password_reset_email(self, to_email, reset_token):
        self.reset_emails.append((to_email, reset_token))
        return True


class FakeOAuthClient:
    """Stands in for a provider: each ``code`` maps to a prepared profile"""

    def __init__(self, provider: AuthProvider):
        self.provider = provider
        self.profiles = {}
        self.failures = {}

    def add_profile(self, code: str, access_token: str = "access-1", **profile_fields) -> None:
        self.profiles[code] = (OAuthProfile(**profile_fields), access_token)

    def fail_with(self, code: str, exc: Exception) -> None:
        self.failures[code] = exc

    def authorization_url(self, state: str) -> str:
        return f"https://{self.provider.value}.example/authorize?state={state}"

    async def fetch_credentials(self, code: str) -> OAuthCredentials:
        if code in self.failures:
            raise self.failures[code]
        profile, access_token = self.profiles[code]
        return OAuthCredentials(
            provider=self.provider,
            profile=profile,
            tokens=OAuthTokens(access_token=access_token, refresh_token="refresh-1")
        )


def make_settings(**overrides) -> Settings:
    values = dict(
        _env_file=None,
        ENVIRONMENT="development",
        SESSION_SECRET="test-secret",
        DATABASE_URL=None,
        FRONTEND_URL="http://localhost:5173",
        LOG_LEVEL="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def gateway():
    return InMemoryPersistenceGateway()


@pytest.fixture
def email_service(settings):
    return RecordingEmailService(settings)


@pytest.fixture
def google():
    return FakeOAuthClient(AuthProvider.GOOGLE)


@pytest.fixture
def github():
    return FakeOAuthClient(AuthProvider.GITHUB)


@pytest.fixture
def app(settings, gateway, email_service, google, github):
    return create_app(
        settings=settings,
        gateway=gateway,
        email_service=email_service,
        oauth_clients={AuthProvider.GOOGLE: google, AuthProvider.GITHUB: github}
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register(client, username="alice", email="a@x.com", password=PASSWORD, **extra):
    body = {
        "username": username,
        "email": email,
        "password": password,
        "confirmPassword": password,
    }
    body.update(extra)
    return client.post("/api/register", json=body)


def assert_no_password(body):
    """No response may ever carry a password (or token) field"""
    if isinstance(body, list):
        for item in body:
            assert_no_password(item)
        return
    assert isinstance(body, dict)
    for key in ("password", "resetPasswordToken", "verificationToken"):
        assert key not in body
