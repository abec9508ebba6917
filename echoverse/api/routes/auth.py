"""Authentication routes"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import JSONResponse

from ...application.dtos.user_dtos import (
    ChangePasswordDto,
    ForgotPasswordDto,
    LoginUserDto,
    MessageResponse,
    PublicUser,
    RegisterUserDto,
    ResetPasswordDto,
)
from ...application.services.identity_resolver import IdentityResolver
from ...application.services.session_manager import SessionManager
from ...application.use_cases.change_password_use_case import ChangePasswordUseCase
from ...application.use_cases.create_demo_user import CreateDemoUserUseCase
from ...application.use_cases.email_verification_use_case import EmailVerificationUseCase
from ...application.use_cases.forgot_password_use_case import ForgotPasswordUseCase
from ...application.use_cases.login_user import LoginUserUseCase
from ...application.use_cases.register_user import RegisterUserUseCase
from ...application.use_cases.reset_password_use_case import ResetPasswordUseCase
from ...core.config import Settings
from ...domain.exceptions import InvalidCredentials, NotFound, ValidationError
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...infrastructure.external_services.email_service import EmailService
from ..dependencies import (
    get_current_user,
    get_email_service,
    get_identity_resolver,
    get_session_id,
    get_session_manager,
    get_settings,
    get_unit_of_work,
)
from ..session_cookie import clear_session_cookie, set_session_cookie

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=PublicUser, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: RegisterUserDto,
    background_tasks: BackgroundTasks,
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work),
    session_manager: SessionManager = Depends(get_session_manager),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings)
):
    """Register a new user and log them in"""
    use_case = RegisterUserUseCase(unit_of_work, settings.VERIFICATION_TOKEN_EXPIRE_HOURS)
    result = await use_case.execute(user_data)

    # Mail failure must not undo the registration
    background_tasks.add_task(email_service.send_verification_email, result.user.email, result.verification_token)

    session = await session_manager.login(result.user)
    response = JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=result.user.model_dump(mode="json", by_alias=True),
        background=background_tasks
    )
    set_session_cookie(response, session, settings)
    return response


@router.post("/login", response_model=PublicUser)
async def login_user(
    login_data: LoginUserDto,
    resolver: IdentityResolver = Depends(get_identity_resolver),
    session_manager: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings)
):
    """Login user"""
    user = await LoginUserUseCase(resolver).execute(login_data)

    session = await session_manager.login(user)
    response = JSONResponse(content=user.model_dump(mode="json", by_alias=True))
    set_session_cookie(response, session, settings)
    return response


@router.post("/logout", response_model=MessageResponse)
async def logout_user(
    session_id: Optional[str] = Depends(get_session_id),
    session_manager: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings)
):
    """Destroy the current session"""
    try:
        await session_manager.logout(session_id)
    except Exception:
        logger.exception("Failed to destroy session")
        return JSONResponse(status_code=500, content={"message": "Error during logout"})

    response = JSONResponse(content=MessageResponse(message="Logged out successfully").model_dump(by_alias=True))
    clear_session_cookie(response, settings)
    return response


@router.get("/verify-email", response_model=MessageResponse)
async def verify_email(
    token: Optional[str] = None,
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work)
):
    """Verify user email with token"""
    await EmailVerificationUseCase(unit_of_work).execute(token or "")
    return MessageResponse(message="Email verified successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordDto,
    background_tasks: BackgroundTasks,
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings)
):
    """Handle forgot password request. The answer never reveals whether the email exists."""
    issued = await ForgotPasswordUseCase(unit_of_work, settings.RESET_TOKEN_EXPIRE_HOURS).execute(request.email)
    if issued.reset_token:
        background_tasks.add_task(email_service.send_password_reset_email, issued.email, issued.reset_token)
    return MessageResponse(message=issued.message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordDto,
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work)
):
    """Reset password with token"""
    await ResetPasswordUseCase(unit_of_work).execute(request.token, request.password)
    return MessageResponse(message="Password reset successfully")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordDto,
    current_user: PublicUser = Depends(get_current_user),
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work)
):
    """Change password of the logged-in user"""
    try:
        await ChangePasswordUseCase(unit_of_work).execute(current_user.id, request.current_password, request.new_password)
    except InvalidCredentials as e:
        raise ValidationError(e.message)
    return MessageResponse(message="Password changed successfully")


@router.get("/create-demo-user", response_model=MessageResponse)
async def create_demo_user(
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work),
    settings: Settings = Depends(get_settings)
):
    """Create the demo account outside production"""
    if settings.is_production:
        raise NotFound()
    created = await CreateDemoUserUseCase(unit_of_work).execute()
    return MessageResponse(message="Demo user created" if created else "Demo user already exists")
