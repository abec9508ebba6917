"""API dependencies"""

from typing import Optional

from fastapi import Depends, Request

from ..application.dtos.user_dtos import PublicUser
from ..application.services.identity_resolver import IdentityResolver
from ..application.services.session_manager import SessionManager
from ..core.config import Settings
from ..domain.enums import AuthProvider, UserRole
from ..domain.exceptions import NotFound
from ..domain.repositories.gateway import IPersistenceGateway
from ..domain.repositories.unit_of_work import IUnitOfWork
from ..infrastructure.external_services.email_service import EmailService
from .session_cookie import read_session_id


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> IPersistenceGateway:
    return request.app.state.gateway


def get_unit_of_work(gateway: IPersistenceGateway = Depends(get_gateway)) -> IUnitOfWork:
    """Get a request-scoped unit of work"""
    return gateway.unit_of_work()


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_identity_resolver(request: Request) -> IdentityResolver:
    return request.app.state.identity_resolver


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_session_id(request: Request, settings: Settings = Depends(get_settings)) -> Optional[str]:
    return read_session_id(request, settings)


async def get_current_user(
    session_id: Optional[str] = Depends(get_session_id),
    session_manager: SessionManager = Depends(get_session_manager)
) -> PublicUser:
    """Get current authenticated user"""
    return await session_manager.require_authenticated(session_id)


async def get_current_admin_user(
    current_user: PublicUser = Depends(get_current_user),
    session_manager: SessionManager = Depends(get_session_manager)
) -> PublicUser:
    """Get current admin user"""
    return session_manager.require_role(current_user, UserRole.ADMIN)


def get_oauth_client(provider: AuthProvider, request: Request):
    """Provider client, or 404 when the provider is not configured"""
    client = request.app.state.oauth_clients.get(provider)
    if client is None or not provider.is_oauth:
        raise NotFound(f"{provider.value} login is not enabled")
    return client
