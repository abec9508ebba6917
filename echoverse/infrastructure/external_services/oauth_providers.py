"""OAuth provider clients for Google and GitHub.

Each client builds the authorization redirect and turns a callback ``code``
into ``OAuthCredentials``. Linking and user creation happen in the identity
resolver, not here.
"""

import logging
from datetime import timedelta
from typing import Dict, Optional
from urllib.parse import urlencode

import httpx
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from starlette.concurrency import run_in_threadpool

from ...core.clock import utcnow
from ...core.config import Settings
from ...domain.enums import AuthProvider
from ...domain.exceptions import UpstreamFailure
from ...domain.value_objects.credentials import OAuthCredentials, OAuthProfile, OAuthTokens

logger = logging.getLogger(__name__)


def _expiry(token_data: dict):
    expires_in = token_data.get("expires_in")
    if not expires_in:
        return None
    return utcnow() + timedelta(seconds=int(expires_in))


class GoogleOAuthClient:
    provider = AuthProvider.GOOGLE

    AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    SCOPES = "openid email profile"

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str, timeout: float = 10.0):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.SCOPES,
            "state": state,
            "access_type": "offline",
            "prompt": "select_account",
        }
        return f"{self.AUTHORIZATION_URL}?{urlencode(params)}"

    async def fetch_credentials(self, code: str) -> OAuthCredentials:
        """Exchange the authorization code and read the profile from the verified ID token"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.TOKEN_URL, data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                })
                response.raise_for_status()
                token_data = response.json()
        except httpx.HTTPError as e:
            logger.error("Google token exchange failed: %s", e)
            raise UpstreamFailure("Google authentication failed")

        raw_id_token = token_data.get("id_token")
        if not raw_id_token:
            raise UpstreamFailure("Google did not return an ID token")

        try:
            idinfo = await run_in_threadpool(
                id_token.verify_oauth2_token, raw_id_token, google_requests.Request(), self.client_id
            )
        except ValueError as e:
            logger.error("Google ID token rejected: %s", e)
            raise UpstreamFailure("Google authentication failed")

        profile = OAuthProfile(
            provider_account_id=str(idinfo["sub"]),
            email=idinfo.get("email"),
            display_name=idinfo.get("name"),
            first_name=idinfo.get("given_name"),
            last_name=idinfo.get("family_name"),
            photo=idinfo.get("picture"),
        )
        tokens = OAuthTokens(
            access_token=token_data.get("access_token"),
            refresh_token=token_data.get("refresh_token"),
            id_token=raw_id_token,
            expires_at=_expiry(token_data),
        )
        return OAuthCredentials(provider=self.provider, profile=profile, tokens=tokens)


class GitHubOAuthClient:
    provider = AuthProvider.GITHUB

    AUTHORIZATION_URL = "https://github.com/login/oauth/authorize"
    TOKEN_URL = "https://github.com/login/oauth/access_token"
    API_URL = "https://api.github.com"
    SCOPES = "user:email"

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str, timeout: float = 10.0):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.SCOPES,
            "state": state,
        }
        return f"{self.AUTHORIZATION_URL}?{urlencode(params)}"

    async def fetch_credentials(self, code: str) -> OAuthCredentials:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, headers={"Accept": "application/json"}) as client:
                response = await client.post(self.TOKEN_URL, data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                })
                response.raise_for_status()
                token_data = response.json()
                access_token = token_data.get("access_token")
                if not access_token:
                    raise UpstreamFailure(token_data.get("error_description") or "GitHub authentication failed")

                auth = {"Authorization": f"Bearer {access_token}"}
                user_response = await client.get(f"{self.API_URL}/user", headers=auth)
                user_response.raise_for_status()
                user_data = user_response.json()

                email = user_data.get("email")
                if not email:
                    emails_response = await client.get(f"{self.API_URL}/user/emails", headers=auth)
                    emails_response.raise_for_status()
                    email = self._primary_email(emails_response.json())
        except httpx.HTTPError as e:
            logger.error("GitHub OAuth request failed: %s", e)
            raise UpstreamFailure("GitHub authentication failed")

        profile = OAuthProfile(
            provider_account_id=str(user_data["id"]),
            email=email,
            display_name=user_data.get("name"),
            username=user_data.get("login"),
            photo=user_data.get("avatar_url"),
        )
        tokens = OAuthTokens(
            access_token=access_token,
            refresh_token=token_data.get("refresh_token"),
            expires_at=_expiry(token_data),
        )
        return OAuthCredentials(provider=self.provider, profile=profile, tokens=tokens)

    @staticmethod
    def _primary_email(emails: list) -> Optional[str]:
        verified = [entry for entry in emails if entry.get("verified")]
        for entry in verified:
            if entry.get("primary"):
                return entry.get("email")
        return verified[0].get("email") if verified else None


def build_oauth_clients(settings: Settings) -> Dict[AuthProvider, object]:
    """Only providers with both a client id and secret are registered"""
    clients: Dict[AuthProvider, object] = {}
    if settings.google_enabled:
        clients[AuthProvider.GOOGLE] = GoogleOAuthClient(
            settings.GOOGLE_CLIENT_ID,
            settings.GOOGLE_CLIENT_SECRET,
            f"{settings.BACKEND_URL}{settings.API_PREFIX}/auth/google/callback",
        )
    if settings.github_enabled:
        clients[AuthProvider.GITHUB] = GitHubOAuthClient(
            settings.GITHUB_CLIENT_ID,
            settings.GITHUB_CLIENT_SECRET,
            f"{settings.BACKEND_URL}{settings.API_PREFIX}/auth/github/callback",
        )
    return clients
