"""JWT session token creation and verification.

Sessions are stateless: a token carries the user id in "sub" and is
valid for a fixed window (24h by default). There is no server-side
revocation list: logging out means the client drops the token, and
rotating the signing secret invalidates every outstanding token.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from docvault.config import Settings


class TokenError(Exception):
    """Raised when token verification fails."""


class MalformedToken(TokenError):
    """Token could not be parsed, or its claims are unusable."""


class ExpiredToken(TokenError):
    """Token is past its exp claim."""


class BadSignature(TokenError):
    """Signature does not verify under the current secret."""


class TokenIssuer:
    """Mints and validates bearer tokens with one process-wide secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_hours: int = 24,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_hours = expires_hours

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_hours=settings.access_token_expire_hours,
        )

    def mint(
        self,
        user_id: uuid.UUID | str,
        expires_hours: Optional[float] = None,
    ) -> str:
        """Create a signed session token for a user."""
        now = datetime.now(timezone.utc)
        hours = self.expires_hours if expires_hours is None else expires_hours
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + timedelta(hours=hours),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def validate(self, token: str) -> uuid.UUID:
        """Verify a token and return the user id it encodes.

        Raises MalformedToken, ExpiredToken or BadSignature.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredToken("Token has expired")
        # InvalidSignatureError subclasses DecodeError, so check it first
        except jwt.InvalidSignatureError:
            raise BadSignature("Token signature is invalid")
        except jwt.InvalidTokenError as e:
            raise MalformedToken(f"Invalid token: {e}")

        try:
            return uuid.UUID(payload["sub"])
        except (ValueError, TypeError, AttributeError):
            raise MalformedToken("Invalid token: bad subject")
