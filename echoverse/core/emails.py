"""Email address normalization shared by every path that stores or looks up an email"""

from typing import Optional

from email_validator import EmailNotValidError, validate_email


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Return the canonical form of ``email`` (lowercased domain, as ``EmailStr`` stores it).

    Addresses that do not validate are only stripped, so lookups still work
    for whatever an identity provider handed over.
    """
    if not email:
        return email
    try:
        return validate_email(email.strip(), check_deliverability=False).normalized
    except EmailNotValidError:
        return email.strip()
