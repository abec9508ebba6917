"""User routes for profile management"""

from typing import List

from fastapi import APIRouter, Depends

from ...application.dtos.user_dtos import LinkedAccountDto, PublicUser, UpdateProfileDto
from ...application.use_cases.get_user_profile import GetUserProfileUseCase, ListLinkedAccountsUseCase
from ...application.use_cases.update_user_profile import UpdateUserProfileUseCase
from ...domain.repositories.unit_of_work import IUnitOfWork
from ..dependencies import get_current_user, get_unit_of_work

router = APIRouter()


@router.get("/user", response_model=PublicUser)
async def get_current_user_profile(current_user: PublicUser = Depends(get_current_user)):
    """Get current user profile"""
    return current_user


@router.patch("/user", response_model=PublicUser)
async def update_current_user_profile(
    request: UpdateProfileDto,
    current_user: PublicUser = Depends(get_current_user),
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work)
):
    """Update profile fields of the current user"""
    return await UpdateUserProfileUseCase(unit_of_work).execute(current_user, request)


@router.get("/user/accounts", response_model=List[LinkedAccountDto])
async def list_linked_accounts(
    current_user: PublicUser = Depends(get_current_user),
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work)
):
    """External identities linked to the current user"""
    return await ListLinkedAccountsUseCase(unit_of_work).execute(current_user.id)


@router.get("/users/{username}", response_model=PublicUser)
async def get_user_profile(username: str, unit_of_work: IUnitOfWork = Depends(get_unit_of_work)):
    """Public profile by username"""
    return await GetUserProfileUseCase(unit_of_work).execute(username)
