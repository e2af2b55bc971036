"""Pydantic schemas for registration, login and the authenticated caller."""
from dataclasses import dataclass
from uuid import UUID

from schemas.base import CamelModel


@dataclass(frozen=True)
class AuthUser:
    """
    Caller identity decoded from a verified session token.

    Built from token claims only - no database lookup happens per request.
    """

    id: UUID
    email: str


class RegisterRequest(CamelModel):
    """Schema for registering a new user. Format rules are enforced by the service."""

    email: str
    password: str


class LoginRequest(CamelModel):
    """Schema for logging in."""

    email: str
    password: str


class UserResponse(CamelModel):
    """Public user fields."""

    id: UUID
    email: str


class AuthResponse(CamelModel):
    """Token plus the user it was issued for."""

    token: str
    user: UserResponse
