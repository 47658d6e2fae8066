"""
Password hashing and access-token helpers.

Passwords go through passlib's bcrypt context with a fixed cost factor.
Access tokens are HS256 JWTs carrying only the account id.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import UTC, datetime, timedelta

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from hiredesk.config import Settings


class PasswordHasher:
    def __init__(self, rounds: int):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Constant-time check of a plaintext password against a stored hash."""
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            # Unrecognised or corrupt stored hash.
            return False

    def dummy_verify(self) -> None:
        """Spend the same work as a real verify when no account matched."""
        self._context.dummy_verify()


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def digest_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def create_access_token(settings: Settings, account_id: int, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=settings.access_token_expire_min))
    payload = {"sub": str(account_id), "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> int | None:
    """
    Decode an access token.

    Returns:
        The account id in the subject claim, or None if the token is invalid or expired
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except InvalidTokenError:
        return None
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        return None
    return int(subject)
