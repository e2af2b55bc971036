"""Service layer for user registration and login."""
import asyncio
import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from core.security import (
    MAX_PASSWORD_BYTES,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from models.user import User
from schemas.auth import AuthResponse, UserResponse
from services import token_service
from services.exceptions import ConflictError, UnauthorizedError, ValidationError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
# Matches the users.email column size
MAX_EMAIL_LENGTH = 255
MIN_PASSWORD_LENGTH = 8
INVALID_CREDENTIALS = "Invalid credentials"


def normalize_email(email: str) -> str:
    """Lowercase an email for case-insensitive identity."""
    return email.lower()


def validate_registration(email: str, password: str) -> None:
    """
    Validate registration input.

    Raises:
        ValidationError: With field-level messages for each failing field.
    """
    errors: dict[str, str] = {}
    if not EMAIL_PATTERN.fullmatch(email):
        errors["email"] = "Invalid email format"
    elif len(email) > MAX_EMAIL_LENGTH:
        errors["email"] = f"Email must be at most {MAX_EMAIL_LENGTH} characters"
    if len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    elif len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        errors["password"] = f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
    if errors:
        # Top-level message is the first failing field's message
        raise ValidationError(next(iter(errors.values())), errors=errors)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Get a user by (case-insensitive) email."""
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


def _auth_response(user: User, settings: Settings) -> AuthResponse:
    token = token_service.issue_token(user.id, user.email, settings)
    return AuthResponse(token=token, user=UserResponse(id=user.id, email=user.email))


async def register(
    db: AsyncSession,
    email: str,
    password: str,
    settings: Settings,
) -> AuthResponse:
    """
    Register a new user and issue a session token.

    Args:
        db: Database session.
        email: Email address; stored lowercased.
        password: Plaintext password; only its bcrypt hash is stored.
        settings: Token signing settings.

    Returns:
        AuthResponse with the token and the new user's id and email.

    Raises:
        ValidationError: If the email format or password length is invalid.
        ConflictError: If the email is already registered (any letter case).

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    validate_registration(email, password)

    normalized = normalize_email(email)
    if await get_user_by_email(db, normalized) is not None:
        raise ConflictError("Email already registered")

    # bcrypt is CPU-bound; keep it off the event loop
    password_hash = await asyncio.to_thread(hash_password, password)

    user = User(email=normalized, password_hash=password_hash)
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        # Handle race condition: another request registered the email between check and flush
        raise ConflictError("Email already registered") from e

    logger.info("user_registered user_id=%s", user.id)
    return _auth_response(user, settings)


async def login(
    db: AsyncSession,
    email: str,
    password: str,
    settings: Settings,
) -> AuthResponse:
    """
    Authenticate a user by email and password and issue a session token.

    Unknown email and wrong password fail identically, and both paths run a
    bcrypt comparison so response time does not reveal whether the email exists.

    Raises:
        UnauthorizedError: With the same message for either failure.
    """
    user = await get_user_by_email(db, email)
    password_hash = user.password_hash if user is not None else dummy_password_hash()
    is_valid = await asyncio.to_thread(verify_password, password, password_hash)

    if user is None or not is_valid:
        logger.info("login_failed")
        raise UnauthorizedError(INVALID_CREDENTIALS)

    return _auth_response(user, settings)
