"""Pydantic schemas for accounts, sessions and profiles.

Request models validate input; UserRead is the only outward view of a
User and never includes the password hash or any secret.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from docvault.schemas.common import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ─── Requests ───────────────────────────────────────────

class RegisterRequest(CamelModel):
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)
    full_name: Optional[str] = Field(None, max_length=200)


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class VerifyCodeRequest(CamelModel):
    email: str = Field(..., min_length=1)
    code: str = Field(..., pattern=r"^[0-9]{6}$")


class VerifyEmailRequest(CamelModel):
    token: str = Field(..., min_length=1)


class EmailRequest(CamelModel):
    email: str = Field(..., min_length=1)


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class ProfileUpdate(CamelModel):
    full_name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)


# ─── Responses ──────────────────────────────────────────

class UserRead(CamelModel):
    id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_verified: bool
    is_profile_completed: bool = False
    created_at: datetime
    updated_at: datetime


class TokenRead(CamelModel):
    token: str


class SessionRead(CamelModel):
    """Login / verify-email result: a session token plus the user."""
    token: str
    user: UserRead


class VerifiedSession(SessionRead):
    message: str
