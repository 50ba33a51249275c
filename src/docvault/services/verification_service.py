"""Verification service — email-verification secrets and password resets.

Two interchangeable artifacts prove control of an email address:
- PIN: 6-digit code, 15 minutes, typed back by the user (verify-code)
- token: 64 hex chars (32 random bytes), 24 hours, clicked as a link
  (verify-email)

DOCVAULT_VERIFICATION_STRATEGY selects which one registration and resend
issue. Both share the same two columns on User and the same rules:
single use, absolute expiry, consuming flips is_verified and clears the
secret in one commit. The kind of the pending secret is stored with it,
so a PIN is never accepted as a link token or the other way round. A PIN
is void after `verification_max_attempts` wrong guesses.

Secrets are stored as SHA-256 digests. Delivery happens after the
commit and a failed send is only logged; the user can always ask for
a resend.
"""

import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.auth.password import hash_password
from docvault.config import Settings
from docvault.db.models import User, ensure_utc, utcnow
from docvault.errors import (
    AlreadyVerified,
    VerificationError,
    VerificationExpired,
    VerificationLocked,
    VerificationNotFound,
)
from docvault.services.mailer import Mailer

logger = structlog.get_logger()

PIN_MIN = 100000
PIN_MAX = 999999


def generate_pin() -> str:
    """Uniform 6-digit code in [100000, 999999]."""
    return str(PIN_MIN + secrets.randbelow(PIN_MAX - PIN_MIN + 1))


def generate_token() -> str:
    """32 bytes of randomness, hex-encoded."""
    return secrets.token_hex(32)


def digest(secret: str) -> str:
    return hashlib.sha256(secret.encode()).hexdigest()


def _is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    expires_at = ensure_utc(expires_at)
    return expires_at is None or now > expires_at


class VerificationService:
    """Issues and consumes verification and password-reset secrets."""

    def __init__(self, db: AsyncSession, mailer: Mailer, settings: Settings):
        self.db = db
        self.mailer = mailer
        self.settings = settings

    @property
    def strategy(self) -> str:
        return self.settings.verification_strategy

    # ─── Issue ──────────────────────────────────────────

    async def issue(self, user: User) -> str:
        """Generate, persist and deliver a fresh verification secret.

        Any earlier secret is replaced. Returns the raw secret.
        """
        if self.strategy == "token":
            secret = generate_token()
            ttl = timedelta(hours=self.settings.verification_token_expire_hours)
        else:
            secret = generate_pin()
            ttl = timedelta(minutes=self.settings.verification_code_expire_minutes)

        user.verification_secret_hash = digest(secret)
        user.verification_kind = self.strategy
        user.verification_expires_at = utcnow() + ttl
        user.verification_attempts = 0
        await self.db.commit()
        logger.info(
            "verification.issued",
            user_id=str(user.id),
            strategy=self.strategy,
            expires_at=user.verification_expires_at.isoformat(),
        )

        await self._deliver_verification(user.email, secret)
        return secret

    async def _deliver_verification(self, email: str, secret: str) -> None:
        try:
            if self.strategy == "token":
                await self.mailer.send_verification_link(
                    email,
                    self.settings.verification_link(secret),
                    self.settings.verification_token_expire_hours,
                )
            else:
                await self.mailer.send_verification_code(
                    email,
                    secret,
                    self.settings.verification_code_expire_minutes,
                )
        except Exception as e:
            logger.warning(
                "verification.delivery_failed",
                email=email,
                error=str(e),
            )

    async def resend(self, email: str) -> Optional[str]:
        """Re-issue for an unverified account; no-op otherwise."""
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalars().first()
        if user is None or user.is_verified:
            return None
        return await self.issue(user)

    # ─── Consume ────────────────────────────────────────

    async def consume_code(self, email: str, code: str) -> User:
        """Verify an email with the PIN that was mailed to it."""
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalars().first()
        if user is None:
            raise VerificationNotFound("User not found")
        if user.is_verified:
            raise AlreadyVerified("Already verified")
        if not user.verification_secret_hash or user.verification_kind != "pin":
            raise VerificationNotFound("Invalid or expired code")
        if not secrets.compare_digest(user.verification_secret_hash, digest(code)):
            raise await self._record_failed_attempt(user)
        if _is_expired(user.verification_expires_at, utcnow()):
            raise VerificationExpired("Verification code has expired")

        await self._mark_verified(user)
        return user

    async def consume_token(self, token: str) -> User:
        """Verify an email with the link token that was mailed to it."""
        result = await self.db.execute(
            select(User).where(
                User.verification_secret_hash == digest(token),
                User.verification_kind == "token",
            )
        )
        user = result.scalars().first()
        if user is None:
            raise VerificationNotFound("Invalid or expired verification token")
        if user.is_verified:
            raise AlreadyVerified("Already verified")
        if _is_expired(user.verification_expires_at, utcnow()):
            raise VerificationExpired("Verification token has expired")

        await self._mark_verified(user)
        return user

    async def _mark_verified(self, user: User) -> None:
        # Flag and secret change together in one commit
        user.is_verified = True
        self._clear_secret(user)
        user.updated_at = utcnow()
        await self.db.commit()
        logger.info("verification.consumed", user_id=str(user.id))

    async def _record_failed_attempt(self, user: User) -> VerificationError:
        """Count a wrong PIN; the last allowed miss voids the code."""
        user.verification_attempts = (user.verification_attempts or 0) + 1
        if user.verification_attempts >= self.settings.verification_max_attempts:
            self._clear_secret(user)
            await self.db.commit()
            logger.warning("verification.locked", user_id=str(user.id))
            return VerificationLocked()

        await self.db.commit()
        return VerificationNotFound("Invalid or expired code")

    @staticmethod
    def _clear_secret(user: User) -> None:
        user.verification_secret_hash = None
        user.verification_kind = None
        user.verification_expires_at = None
        user.verification_attempts = 0

    # ─── Password reset ─────────────────────────────────

    async def issue_password_reset(self, email: str) -> Optional[str]:
        """Mail a reset link to an existing account; no-op otherwise."""
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalars().first()
        if user is None:
            return None

        token = generate_token()
        user.reset_secret_hash = digest(token)
        user.reset_expires_at = utcnow() + timedelta(
            minutes=self.settings.password_reset_expire_minutes
        )
        await self.db.commit()
        logger.info("password_reset.issued", user_id=str(user.id))

        try:
            await self.mailer.send_password_reset(
                user.email,
                self.settings.reset_link(token),
                self.settings.password_reset_expire_minutes,
            )
        except Exception as e:
            logger.warning(
                "password_reset.delivery_failed",
                email=user.email,
                error=str(e),
            )
        return token

    async def reset_password(self, token: str, new_password: str) -> User:
        """Consume a reset token and set the new password."""
        result = await self.db.execute(
            select(User).where(User.reset_secret_hash == digest(token))
        )
        user = result.scalars().first()
        if user is None:
            raise VerificationNotFound("Invalid or expired reset token")
        if _is_expired(user.reset_expires_at, utcnow()):
            raise VerificationExpired("Reset token has expired")

        user.password_hash = hash_password(new_password)
        user.reset_secret_hash = None
        user.reset_expires_at = None
        user.updated_at = utcnow()
        await self.db.commit()
        logger.info("password_reset.completed", user_id=str(user.id))
        return user
