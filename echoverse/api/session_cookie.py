"""Session cookie transport: a signed value carrying the server-side session id"""

from datetime import timedelta
from typing import Optional

from fastapi import Request, Response

from ..core.config import Settings
from ..core.security import sign_value, unsign_value
from ..domain.entities.session import Session

OAUTH_STATE_COOKIE = "echoverse.oauth_state"
OAUTH_STATE_TTL = timedelta(minutes=10)


def set_session_cookie(response: Response, session: Session, settings: Settings) -> None:
    max_age = timedelta(days=settings.SESSION_MAX_AGE_DAYS)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=sign_value({"sid": session.id}, settings.SESSION_SECRET, max_age, settings.ALGORITHM),
        max_age=int(max_age.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


def read_session_id(request: Request, settings: Settings) -> Optional[str]:
    payload = unsign_value(request.cookies.get(settings.SESSION_COOKIE_NAME), settings.SESSION_SECRET, settings.ALGORITHM)
    return payload.get("sid") if payload else None


def set_oauth_state_cookie(response: Response, provider: str, state: str, settings: Settings) -> None:
    response.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=sign_value({"state": state, "provider": provider}, settings.SESSION_SECRET, OAUTH_STATE_TTL, settings.ALGORITHM),
        max_age=int(OAUTH_STATE_TTL.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


def oauth_state_matches(request: Request, provider: str, state: Optional[str], settings: Settings) -> bool:
    payload = unsign_value(request.cookies.get(OAUTH_STATE_COOKIE), settings.SESSION_SECRET, settings.ALGORITHM)
    if not payload or not state:
        return False
    return payload.get("provider") == provider and payload.get("state") == state
