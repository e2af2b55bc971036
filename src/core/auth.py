"""Bearer-token authentication dependency."""
import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config import Settings, get_settings
from schemas.auth import AuthUser
from services import token_service
from services.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme; auto_error=False so a missing header reaches our
# handler and is reported in the standard error envelope
security = HTTPBearer(auto_error=False)

MISSING_CREDENTIALS = "Missing or invalid authorization header"


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> AuthUser:
    """
    Resolve the caller from the `Authorization: Bearer <token>` header.

    Identity comes from the verified token claims alone; no database lookup
    is made per request.

    Raises:
        UnauthorizedError: If the header is absent, not a Bearer credential,
            or the token fails verification.
    """
    if credentials is None or not credentials.credentials:
        logger.info("auth_failed reason=missing_credentials")
        raise UnauthorizedError(MISSING_CREDENTIALS)

    return token_service.verify_token(credentials.credentials, settings)
