"""Security utilities"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError
from passlib.crypto.scrypt import scrypt
from passlib.utils import consteq


# scrypt parameters shared by hash and verify
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64
SALT_BYTES = 16


def _derive(password: str, salt: str) -> bytes:
    return scrypt(password.encode("utf-8"), salt.encode("ascii"), SCRYPT_N, SCRYPT_R, SCRYPT_P, KEY_LENGTH)


def hash_password(password: str) -> str:
    """Hash password as ``digest_hex.salt_hex``"""
    salt = secrets.token_hex(SALT_BYTES)
    return f"{_derive(password, salt).hex()}.{salt}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against a stored ``digest_hex.salt_hex`` value.

    Malformed stored values never raise, they simply do not match.
    """
    if not hashed_password or hashed_password.count(".") != 1:
        return False

    digest_hex, salt = hashed_password.split(".")
    if not digest_hex or not salt:
        return False

    try:
        expected = bytes.fromhex(digest_hex)
        salt.encode("ascii")
    except (ValueError, UnicodeEncodeError):
        return False

    if len(expected) != KEY_LENGTH:
        return False

    return consteq(_derive(plain_password, salt), expected)


def generate_token(nbytes: int = 32) -> str:
    """Generate an opaque hex token from ``nbytes`` random bytes."""
    return secrets.token_hex(nbytes)


def generate_session_id() -> str:
    return secrets.token_urlsafe(32)


def sign_value(payload: Dict[str, Any], secret: str, expires_delta: timedelta, algorithm: str = "HS256") -> str:
    """Sign a small payload for a cookie value"""
    to_encode = dict(payload)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def unsign_value(token: Optional[str], secret: str, algorithm: str = "HS256") -> Optional[Dict[str, Any]]:
    """Return the payload of a signed cookie value, or None if tampered or expired"""
    if not token:
        return None
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError:
        return None
