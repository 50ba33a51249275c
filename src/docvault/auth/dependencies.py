"""FastAPI auth dependencies.

These are used as Depends() in route handlers (or at include_router
level) to extract and validate the current identity from the request.
This is the only place an Identity is ever constructed.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from docvault.auth.jwt import TokenError, TokenIssuer
from docvault.errors import Forbidden, Unauthenticated

logger = structlog.get_logger()


@dataclass(frozen=True)
class Identity:
    """The authenticated caller. Downstream code scopes queries by user_id."""

    user_id: uuid.UUID


def get_token_issuer(request: Request) -> TokenIssuer:
    """The application's TokenIssuer (built once in create_app)."""
    return request.app.state.token_issuer


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def get_current_identity(
    authorization: Optional[str] = Header(None),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> Identity:
    """Resolve the caller from `Authorization: Bearer <token>`.

    Missing credentials → 401; a token that is malformed, expired or
    signed with another secret → 403.
    """
    token = _bearer_token(authorization)
    if token is None:
        raise Unauthenticated("Authentication required")

    try:
        user_id = issuer.validate(token)
    except TokenError as e:
        logger.info("auth.token_rejected", reason=type(e).__name__)
        raise Forbidden("Invalid token")

    return Identity(user_id=user_id)
