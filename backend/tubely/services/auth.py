"""JWT bearer-token authentication."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from jose import JWTError, jwt

from tubely.config.base import settings
from tubely.errors import UnauthenticatedError

TOKEN_ISSUER = "tubely-access"


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    header = headers.get("Authorization") or headers.get("authorization")
    if not header:
        raise UnauthenticatedError("Missing Authorization header", error_code="MISSING_TOKEN")

    scheme, _, token = header.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise UnauthenticatedError("Malformed Authorization header", error_code="MALFORMED_TOKEN")
    return token


def create_access_token(
    user_id: uuid.UUID,
    secret: Optional[str] = None,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Create a signed access token for ``user_id``.

    Args:
        user_id: Subject of the token
        secret: Signing key, JWT_SECRET by default
        expires_in: Lifetime, ACCESS_TOKEN_EXPIRE_MINUTES by default
    """
    now = datetime.now(timezone.utc)
    if expires_in is None:
        expires_in = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        "iss": TOKEN_ISSUER,
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def validate_access_token(token: str, secret: Optional[str] = None) -> uuid.UUID:
    """Verify signature, expiry and issuer; return the user id."""
    try:
        payload = jwt.decode(
            token,
            secret or settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=TOKEN_ISSUER,
        )
    except JWTError as e:
        raise UnauthenticatedError(f"Invalid token: {e}", error_code="INVALID_TOKEN") from e

    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError as e:
        raise UnauthenticatedError("Token subject is not a user id", error_code="INVALID_TOKEN") from e
