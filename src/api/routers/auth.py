"""Registration and login endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_settings
from core.config import Settings
from schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from services import user_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    """
    Create an account and return a session token.

    Returns 422 for an invalid email or a password shorter than 8 characters,
    409 if the email is already registered.
    """
    return await user_service.register(db, data.email, data.password, settings)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    """Exchange email and password for a session token. Returns 401 on bad credentials."""
    return await user_service.login(db, data.email, data.password, settings)
