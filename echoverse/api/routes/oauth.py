"""Social login routes (Google, GitHub)"""

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from ...application.services.identity_resolver import IdentityResolver
from ...application.services.session_manager import SessionManager
from ...application.use_cases.oauth_login_use_case import OAuthLoginUseCase
from ...core.config import Settings
from ...domain.enums import AuthProvider
from ...domain.exceptions import AuthError
from ..dependencies import get_identity_resolver, get_oauth_client, get_session_manager, get_settings
from ..session_cookie import OAUTH_STATE_COOKIE, oauth_state_matches, set_oauth_state_cookie, set_session_cookie

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure_redirect(settings: Settings, reason: str) -> RedirectResponse:
    response = RedirectResponse(f"{settings.FRONTEND_URL}/auth?{urlencode({'error': reason})}", status_code=302)
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/")
    return response


@router.get("/auth/{provider}")
async def oauth_start(
    provider: AuthProvider,
    provider_client=Depends(get_oauth_client),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    settings: Settings = Depends(get_settings)
):
    """Redirect to the provider's consent screen"""
    use_case = OAuthLoginUseCase(provider_client, resolver)
    state = use_case.new_state()
    response = RedirectResponse(use_case.get_authorization_url(state), status_code=302)
    set_oauth_state_cookie(response, provider.value, state, settings)
    return response


@router.get("/auth/{provider}/callback")
async def oauth_callback(
    provider: AuthProvider,
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    provider_client=Depends(get_oauth_client),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    session_manager: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings)
):
    """Finish the OAuth flow, then send the user to onboarding or home"""
    if error or not code:
        return _failure_redirect(settings, error or "missing_code")
    if not oauth_state_matches(request, provider.value, state, settings):
        logger.warning("OAuth state mismatch for %s callback", provider.value)
        return _failure_redirect(settings, "invalid_state")

    try:
        user = await OAuthLoginUseCase(provider_client, resolver).handle_callback(code)
    except AuthError as e:
        logger.warning("%s login failed: %s", provider.value, e.message)
        return _failure_redirect(settings, e.message)

    if user.onboarding_completed:
        target = f"{settings.FRONTEND_URL}/"
    else:
        target = f"{settings.FRONTEND_URL}/onboarding?step={user.onboarding_step or 1}"

    session = await session_manager.login(user)
    response = RedirectResponse(target, status_code=302)
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/")
    set_session_cookie(response, session, settings)
    return response
