"""Service layer for issuing and verifying signed session tokens (JWT, HS256)."""
import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt

from core.config import Settings
from schemas.auth import AuthUser
from services.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["sub", "email", "iat", "exp"]


def issue_token(
    user_id: UUID,
    email: str,
    settings: Settings,
    now: datetime | None = None,
) -> str:
    """
    Issue a signed session token for a user.

    Args:
        user_id: ID of the user; stored in the `sub` claim.
        email: User email; stored in the `email` claim.
        settings: Provides the signing secret and token lifetime.
        now: Issue time (defaults to the current time).

    Returns:
        Encoded JWT valid for `settings.token_lifetime_days` days.
    """
    issued_at = now or datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=settings.token_lifetime_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def verify_token(token: str, settings: Settings) -> AuthUser:
    """
    Verify a session token's signature and expiry and return the caller.

    There is no revocation list: a token is valid until it expires.

    Raises:
        UnauthorizedError: If the token is malformed, tampered with, signed
            with another key or algorithm, expired, or missing claims.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": REQUIRED_CLAIMS},
        )
        return AuthUser(id=UUID(payload["sub"]), email=payload["email"])
    except jwt.ExpiredSignatureError as e:
        logger.info("token_rejected reason=expired")
        raise UnauthorizedError("Invalid token") from e
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        logger.info("token_rejected reason=%s", type(e).__name__)
        raise UnauthorizedError("Invalid token") from e
