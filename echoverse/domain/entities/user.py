"""User entity with business logic"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from ...core.clock import utcnow
from ...core.security import generate_token
from ..enums import UserRole, AuthProvider
from ..exceptions import Forbidden, ValidationError
from ..value_objects.credentials import OAuthProfile
from ..value_objects.entity_ids import UserId


PROFILE_FIELDS = (
    "full_name",
    "first_name",
    "last_name",
    "bio",
    "avatar",
    "onboarding_step",
    "onboarding_completed",
    "preferences",
)

# Profile fields that must always hold a value
REQUIRED_PROFILE_FIELDS = ("onboarding_step", "onboarding_completed", "preferences")


@dataclass
class StoredUser:
    """User record as persisted, including credential material.

    Never handed to callers above the identity layer; use
    ``to_public_user`` from the DTO module instead.
    """
    id: Optional[UserId]
    username: str
    email: str
    password: Optional[str] = field(default=None, repr=False)
    email_verified: bool = False
    verification_token: Optional[str] = field(default=None, repr=False)
    verification_token_expires_at: Optional[datetime] = None

    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    role: UserRole = UserRole.USER

    onboarding_step: int = 1
    onboarding_completed: bool = False
    preferences: Dict[str, Any] = field(default_factory=dict)

    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    subscription_tier: Optional[str] = None

    reset_password_token: Optional[str] = field(default=None, repr=False)
    reset_password_expires: Optional[datetime] = None

    last_login_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create_local(
        cls,
        username: str,
        email: str,
        password_hash: str,
        role: UserRole = UserRole.USER
    ) -> 'StoredUser':
        """Factory method for a username/password registration"""
        if role.is_privileged:
            raise Forbidden("Cannot self-assign a privileged role")
        now = utcnow()
        return cls(
            id=None,
            username=username,
            email=email,
            password=password_hash,
            role=role,
            email_verified=False,
            created_at=now,
            updated_at=now
        )

    @classmethod
    def create_from_oauth(cls, provider: AuthProvider, profile: OAuthProfile) -> 'StoredUser':
        """Factory method for a first social login. The provider already verified the email."""
        now = utcnow()
        return cls(
            id=None,
            username=f"{provider.value}_{profile.provider_account_id}",
            email=profile.email,
            password=None,
            email_verified=True,
            full_name=profile.full_name or None,
            first_name=profile.first_name,
            last_name=profile.last_name,
            avatar=profile.photo,
            role=UserRole.USER,
            onboarding_step=1,
            onboarding_completed=False,
            last_login_at=now,
            created_at=now,
            updated_at=now
        )

    @property
    def has_password(self) -> bool:
        return bool(self.password)

    def issue_verification_token(self, expires_in_hours: int) -> str:
        """Business logic: generate email verification token"""
        self.verification_token = generate_token()
        self.verification_token_expires_at = utcnow() + timedelta(hours=expires_in_hours)
        self.updated_at = utcnow()
        return self.verification_token

    def is_verification_token_expired(self, now: Optional[datetime] = None) -> bool:
        if self.verification_token_expires_at is None:
            return False
        return (now or utcnow()) > self.verification_token_expires_at

    def verify_email(self) -> None:
        """Business logic: verify user email and consume the token"""
        self.email_verified = True
        self.verification_token = None
        self.verification_token_expires_at = None
        self.updated_at = utcnow()

    def issue_password_reset_token(self, expires_in_hours: int) -> str:
        """Business logic: generate password reset token, superseding any earlier one"""
        self.reset_password_token = generate_token()
        self.reset_password_expires = utcnow() + timedelta(hours=expires_in_hours)
        self.updated_at = utcnow()
        return self.reset_password_token

    def is_reset_token_expired(self, now: Optional[datetime] = None) -> bool:
        if self.reset_password_expires is None:
            return False
        return (now or utcnow()) > self.reset_password_expires

    def reset_password(self, password_hash: str) -> None:
        """Business logic: set new password and clear the reset token together"""
        self.password = password_hash
        self.reset_password_token = None
        self.reset_password_expires = None
        self.updated_at = utcnow()

    def change_password(self, password_hash: str) -> None:
        self.password = password_hash
        self.updated_at = utcnow()

    def record_login(self) -> None:
        """Record user login"""
        self.last_login_at = utcnow()

    def update_profile(self, changes: Dict[str, Any]) -> None:
        """Apply profile changes; unknown keys are rejected"""
        unknown = set(changes) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        cleared = sorted(name for name in REQUIRED_PROFILE_FIELDS if name in changes and changes[name] is None)
        if cleared:
            raise ValidationError(f"Fields cannot be empty: {', '.join(cleared)}")
        for name, value in changes.items():
            setattr(self, name, value)
        self.updated_at = utcnow()

    def change_role(self, role: UserRole, actor_role: UserRole) -> None:
        """Business logic: only admins may assign roles"""
        if actor_role != UserRole.ADMIN:
            raise Forbidden("Admin access required")
        self.role = role
        self.updated_at = utcnow()
