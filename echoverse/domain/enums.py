"""
Domain Enums - Business domain enumerations
"""

from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    BUSINESS = "business"
    DEVELOPER = "developer"
    MARKETER = "marketer"
    EDUCATOR = "educator"
    STUDENT = "student"
    PARENT = "parent"

    @property
    def is_privileged(self) -> bool:
        return self is UserRole.ADMIN


class AuthProvider(str, Enum):
    GOOGLE = "google"
    GITHUB = "github"
    CREDENTIALS = "credentials"

    @property
    def is_oauth(self) -> bool:
        return self is not AuthProvider.CREDENTIALS
