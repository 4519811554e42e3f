"""Authentication backend for password and session token handling.

This module provides core authentication utilities including:
- Password hashing and verification with bcrypt
- Password strength validation
- Session (access and refresh) JWT minting and verification

Token verification is a pure function of the token, the process-wide
signing key and the clock; it holds no state and is safe to run
concurrently or to retry.
"""

import secrets
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any
from uuid import UUID

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError as PydanticValidationError

from tms.config import settings
from tms.core.auth.schemas import RefreshTokenData, SessionClaims, TokenData
from tms.core.constants import (
    ACCESS_TOKEN_TYPE,
    MAX_PASSWORD_LENGTH,
    REFRESH_TOKEN_TYPE,
    TOKEN_JTI_LENGTH,
)
from tms.core.errors import InvalidTokenError, ValidationError


logger = structlog.get_logger()


# Password hashing context using bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


# ============================================================
# Password Utilities
# ============================================================


def validate_password_strength(password: str) -> None:
    """Check a new password before it is hashed.

    Args:
        password: Plain text password

    Raises:
        ValidationError: If the password is too short or too long
    """
    if len(password) < settings.password_min_length:
        raise ValidationError(
            f"Password must be at least {settings.password_min_length} characters long",
            errors=[{"field": "password", "message": "too_short"}],
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_LENGTH} bytes long",
            errors=[{"field": "password", "message": "too_long"}],
        )


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash of the password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a password against its hash.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Bcrypt hash to verify against, None for accounts
            that only log in through the identity provider

    Returns:
        True if password matches, False otherwise
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed or unknown hash format
        logger.warning("password_hash_unreadable")
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return pwd_context.hash(secrets.token_urlsafe(16))


def burn_password_check(plain_password: str) -> None:
    """Spend the same time as a real check when there is no user to check.

    Keeps "unknown email" and "wrong password" indistinguishable by timing.
    """
    pwd_context.verify(plain_password, _dummy_hash())


# ============================================================
# Session Token Utilities
# ============================================================


def _signing_key() -> str:
    return settings.jwt_secret_key.get_secret_value()


def _timing_claims(now: datetime, lifetime: timedelta) -> dict[str, Any]:
    issued_at = int(now.timestamp())
    return {
        "iss": settings.jwt_issuer,
        "iat": issued_at,
        "exp": issued_at + int(lifetime.total_seconds()),
        "jti": secrets.token_urlsafe(TOKEN_JTI_LENGTH),
    }


def access_token_lifetime() -> timedelta:
    """Configured access token lifetime (the permission staleness window)."""
    return timedelta(minutes=settings.access_token_expire_minutes)


def refresh_token_lifetime() -> timedelta:
    """Configured refresh token lifetime."""
    return timedelta(days=settings.refresh_token_expire_days)


def create_access_token(
    claims: SessionClaims,
    expires_delta: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    """Create a signed access token embedding the permission set.

    Args:
        claims: Subject, email, tenant, profile and permission ids
        expires_delta: Optional custom lifetime
        now: Mint time, defaults to the current time

    Returns:
        Encoded JWT access token
    """
    to_encode: dict[str, Any] = {
        "sub": str(claims.subject),
        "type": ACCESS_TOKEN_TYPE,
        "email": claims.email,
        "tenant_id": str(claims.tenant_id) if claims.tenant_id else None,
        "profile_id": str(claims.profile_id) if claims.profile_id else None,
        "permissions": sorted(claims.permissions),
    }
    to_encode.update(
        _timing_claims(now or datetime.now(UTC), expires_delta or access_token_lifetime())
    )

    return jwt.encode(to_encode, _signing_key(), algorithm=settings.jwt_algorithm)


def create_refresh_token(
    user_id: UUID,
    expires_delta: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    """Create a signed refresh token carrying only the subject.

    Args:
        user_id: The user's UUID
        expires_delta: Optional custom lifetime
        now: Mint time, defaults to the current time

    Returns:
        Encoded JWT refresh token
    """
    to_encode: dict[str, Any] = {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE}
    to_encode.update(
        _timing_claims(now or datetime.now(UTC), expires_delta or refresh_token_lifetime())
    )

    return jwt.encode(to_encode, _signing_key(), algorithm=settings.jwt_algorithm)


def _verify(token: str, expected_type: str, now: datetime | None) -> dict[str, Any]:
    """Check signature, issuer, type and expiry; return the raw payload."""
    try:
        payload = jwt.decode(
            token,
            _signing_key(),
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            # Expiry is checked below so the boundary instant is rejected
            options={"verify_exp": False, "verify_aud": False},
        )
    except JWTError as e:
        logger.info("token_rejected", reason="signature_or_format")
        raise InvalidTokenError() from e

    if payload.get("type") != expected_type:
        logger.info("token_rejected", reason="wrong_type")
        raise InvalidTokenError()

    exp = payload.get("exp")
    if not isinstance(exp, int):
        logger.info("token_rejected", reason="missing_expiry")
        raise InvalidTokenError()

    current = (now or datetime.now(UTC)).timestamp()
    if current >= exp:
        logger.info("token_rejected", reason="expired")
        raise InvalidTokenError()

    return payload


def decode_token(token: str, now: datetime | None = None) -> TokenData:
    """Verify an access token and return its data.

    Args:
        token: The JWT access token
        now: Verification time, defaults to the current time

    Returns:
        TokenData with the embedded claims

    Raises:
        InvalidTokenError: If the token is expired, malformed, forged, or
            not an access token. The caller cannot tell which.
    """
    payload = _verify(token, ACCESS_TOKEN_TYPE, now)

    try:
        return TokenData(
            subject=payload.get("sub"),
            email=payload.get("email"),
            tenant_id=payload.get("tenant_id"),
            profile_id=payload.get("profile_id"),
            permissions=frozenset(payload.get("permissions") or ()),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
            jti=payload.get("jti"),
        )
    except (KeyError, TypeError, PydanticValidationError) as e:
        logger.info("token_rejected", reason="malformed_claims")
        raise InvalidTokenError() from e


def decode_refresh_token(token: str, now: datetime | None = None) -> RefreshTokenData:
    """Verify a refresh token and return its subject.

    Raises:
        InvalidTokenError: On any verification failure
    """
    payload = _verify(token, REFRESH_TOKEN_TYPE, now)

    try:
        return RefreshTokenData(
            subject=payload.get("sub"),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
            jti=payload.get("jti"),
        )
    except (KeyError, TypeError, PydanticValidationError) as e:
        logger.info("token_rejected", reason="malformed_claims")
        raise InvalidTokenError() from e
