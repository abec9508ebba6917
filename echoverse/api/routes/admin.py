"""Admin routes"""

from fastapi import APIRouter, Depends

from ...application.dtos.user_dtos import PublicUser, SetRoleDto
from ...application.use_cases.set_user_role import SetUserRoleUseCase
from ...domain.repositories.unit_of_work import IUnitOfWork
from ..dependencies import get_current_admin_user, get_unit_of_work

router = APIRouter()


@router.patch("/users/{user_id}/role", response_model=PublicUser)
async def set_user_role(
    user_id: int,
    request: SetRoleDto,
    admin_user: PublicUser = Depends(get_current_admin_user),
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work)
):
    """Assign a role to any user"""
    return await SetUserRoleUseCase(unit_of_work).execute(admin_user, user_id, request.role)
