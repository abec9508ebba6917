"""User DTOs for API layer"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from ...domain.entities.account import Account
from ...domain.entities.user import StoredUser
from ...domain.enums import UserRole


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys, as the SPA sends and expects them"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterUserDto(CamelModel):
    """DTO for user registration"""
    username: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=1)
    confirm_password: Optional[str] = None
    role: Optional[UserRole] = None

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterUserDto":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginUserDto(CamelModel):
    """DTO for user login"""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ForgotPasswordDto(CamelModel):
    """DTO for forgot password request"""
    email: EmailStr


class ResetPasswordDto(CamelModel):
    """DTO for reset password request"""
    token: str = Field(min_length=1)
    password: str = Field(min_length=1)
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordDto":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ChangePasswordDto(CamelModel):
    """DTO for an authenticated password change"""
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=1)
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordDto":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UpdateProfileDto(CamelModel):
    """Profile fields a user may change on themselves. ``role`` only applies for admins.

    Only fields present in the request are applied. Text fields may be cleared
    with ``null``; onboarding state and preferences may not.
    """
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    onboarding_step: int = Field(default=1, ge=1)
    onboarding_completed: bool = False
    preferences: Dict[str, Any] = Field(default_factory=dict)
    role: Optional[UserRole] = None

    def profile_changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"role"})


class SetRoleDto(CamelModel):
    role: UserRole


class MessageResponse(CamelModel):
    message: str
    success: bool = True


class PublicUser(CamelModel):
    """User as seen by clients. Has no password or token fields."""
    id: int
    username: str
    email: str
    email_verified: bool
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    role: UserRole
    onboarding_step: int
    onboarding_completed: bool
    preferences: Dict[str, Any] = Field(default_factory=dict)
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    subscription_tier: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class LinkedAccountDto(CamelModel):
    provider: str
    provider_account_id: str
    created_at: datetime

    @classmethod
    def from_entity(cls, account: Account) -> "LinkedAccountDto":
        return cls(
            provider=account.provider.value,
            provider_account_id=account.provider_account_id,
            created_at=account.created_at
        )


def to_public_user(user: StoredUser) -> PublicUser:
    """The single place a stored user is turned into its client-facing shape"""
    return PublicUser(
        id=user.id.value,
        username=user.username,
        email=user.email,
        email_verified=user.email_verified,
        full_name=user.full_name,
        first_name=user.first_name,
        last_name=user.last_name,
        avatar=user.avatar,
        bio=user.bio,
        role=user.role,
        onboarding_step=user.onboarding_step,
        onboarding_completed=user.onboarding_completed,
        preferences=dict(user.preferences or {}),
        stripe_customer_id=user.stripe_customer_id,
        stripe_subscription_id=user.stripe_subscription_id,
        subscription_tier=user.subscription_tier,
        last_login_at=user.last_login_at,
        created_at=user.created_at,
        updated_at=user.updated_at
    )
