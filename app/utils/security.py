"""Credential hashing, generation, and signed session tokens."""

from __future__ import annotations

import secrets
import string
from datetime import datetime
from typing import Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from app.config import settings
from app.utils.errors import UnauthorizedError
from app.utils.time import minutes_from_now, now_utc

ALGORITHM = "HS256"
PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"

ROLE_ADMIN = "ADMIN"
ROLE_STUDENT = "STUDENT"


def hash_secret(value: str, rounds: int | None = None) -> str:
    """Hash a password, voter key, or OTP with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(value.encode("utf-8"), salt).decode("utf-8")


def verify_secret(value: str, hashed: str | None) -> bool:
    """Check ``value`` against a bcrypt hash; malformed hashes never match."""
    if not value or not hashed:
        return False
    try:
        return bcrypt.checkpw(value.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def generate_password(length: int | None = None) -> str:
    """Return a random voter password."""
    size = length or settings.password_length
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(size))


def generate_voter_key() -> str:
    """Return a 16-character uppercase hex voter key."""
    return secrets.token_hex(8).upper()


def generate_otp() -> str:
    """Return a 6-digit numeric one-time code."""
    return str(100000 + secrets.randbelow(900000))


def create_session_token(subject: Any, role: str, ttl_minutes: int) -> str:
    """Sign a short-lived session token for an admin or a voter."""
    issued_at = now_utc()
    claims = {
        "sub": str(subject),
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": int(minutes_from_now(ttl_minutes, base=issued_at).timestamp()),
    }
    return jwt.encode(claims, settings.session_secret, algorithm=ALGORITHM)


def decode_session_claims(token: str, expected_role: str) -> dict[str, Any]:
    """Validate a session token and return its claims with ``sub`` as an int.

    Raises:
        UnauthorizedError: 401 if the token is malformed, expired, signed
            with another key, or was issued for a different role.
    """
    try:
        claims = jwt.decode(token, settings.session_secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError as exc:
        raise UnauthorizedError("Session expired") from exc
    except JWTError as exc:
        raise UnauthorizedError("Invalid session token") from exc

    if claims.get("role") != expected_role:
        raise UnauthorizedError("Invalid session token")

    try:
        claims["sub"] = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise UnauthorizedError("Invalid session token") from exc
    return claims


def decode_session_token(token: str, expected_role: str) -> int:
    """Validate a session token and return the user id it was issued for."""
    return decode_session_claims(token, expected_role)["sub"]


def issued_before(claims: dict[str, Any], cutoff: datetime | None) -> bool:
    """Return True when a token was signed before ``cutoff`` (whole seconds)."""
    if cutoff is None:
        return False
    return int(claims.get("iat", 0)) < int(cutoff.timestamp())
