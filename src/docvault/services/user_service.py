"""User service — the credential store.

Service layer separates business logic from HTTP routing. API routes
call services, services call the database and raise errors from
docvault.errors; the routes never touch password hashes directly.
"""

import re
import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.auth.password import hash_password, verify_password
from docvault.db.models import User, utcnow
from docvault.errors import DuplicateEmail, InvalidCredentials, InvalidFormat, NotFound

logger = structlog.get_logger()

PHONE_RE = re.compile(r"^[0-9]{10,11}$")
PROFILE_FIELDS = ("full_name", "phone", "address")


class UserService:
    """Business logic for accounts and credentials."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def get(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_or_404(self, user_id: uuid.UUID) -> User:
        user = await self.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    # ─── Registration ───────────────────────────────────

    async def register(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> User:
        """Create an unverified account. Raises DuplicateEmail."""
        if await self.find_by_email(email) is not None:
            raise DuplicateEmail("User already exists")

        now = utcnow()
        user = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            is_verified=False,
            created_at=now,
            updated_at=now,
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise DuplicateEmail("User already exists")
        logger.info("auth.registered", user_id=str(user.id))
        return user

    # ─── Login ──────────────────────────────────────────

    async def authenticate(self, email: str, password: str) -> User:
        """Check email + password and return the user.

        Unknown email and wrong password produce the same error. The
        "verify your email" rejection is only given to a caller who
        already proved the password.
        """
        user = await self.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentials("Invalid credentials")
        if not user.is_verified:
            raise InvalidCredentials("Please verify your email before logging in")
        return user

    # ─── Passwords ──────────────────────────────────────

    async def update_password(self, user_id: uuid.UUID, new_password: str) -> User:
        user = await self.get_or_404(user_id)
        user.password_hash = hash_password(new_password)
        user.updated_at = utcnow()
        await self.db.commit()
        return user

    async def change_password(
        self,
        user_id: uuid.UUID,
        current_password: str,
        new_password: str,
    ) -> User:
        user = await self.get_or_404(user_id)
        if not verify_password(current_password, user.password_hash):
            raise InvalidCredentials("Current password is incorrect")
        user = await self.update_password(user_id, new_password)
        logger.info("auth.password_changed", user_id=str(user_id))
        return user

    # ─── Profile ────────────────────────────────────────

    async def update_profile(self, user_id: uuid.UUID, fields: dict) -> User:
        """Partial update: only keys present in `fields` are written."""
        phone = fields.get("phone")
        if phone and not PHONE_RE.match(phone):
            raise InvalidFormat("Invalid phone number format")

        user = await self.get_or_404(user_id)
        for key in PROFILE_FIELDS:
            if key in fields:
                setattr(user, key, fields[key])
        user.updated_at = utcnow()
        await self.db.commit()
        return user
