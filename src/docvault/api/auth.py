"""Auth API — registration, verification, login, profile, passwords.

Routes for the account lifecycle:
- POST /auth/register → create an unverified account, mail a PIN or link
- POST /auth/verify-code → email + PIN → verified
- GET|POST /auth/verify-email → link token → verified + session token
- POST /auth/resend-verification → mail a fresh secret
- POST /auth/login → email/password → session token
- POST /auth/forgot-password, /auth/reset-password → reset by link
- POST /auth/refresh-token → new session token for a valid one
- GET|PUT /auth/profile, PUT /auth/change-password → authenticated

Responses that could reveal whether an email is registered (resend,
forgot-password) always return the same message.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.auth.dependencies import Identity, get_current_identity, get_token_issuer
from docvault.auth.jwt import TokenIssuer
from docvault.config import settings
from docvault.db.engine import get_db
from docvault.errors import ValidationError
from docvault.schemas.common import Envelope, Message, ok
from docvault.schemas.user import (
    ChangePasswordRequest,
    EmailRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    SessionRead,
    TokenRead,
    UserRead,
    VerifiedSession,
    VerifyCodeRequest,
    VerifyEmailRequest,
)
from docvault.services.mailer import Mailer
from docvault.services.user_service import UserService
from docvault.services.verification_service import VerificationService

router = APIRouter(prefix="/auth")


def get_mailer(request: Request) -> Mailer:
    """The application's mailer (built once in create_app)."""
    return request.app.state.mailer


def _users(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def _verifier(
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> VerificationService:
    return VerificationService(db, mailer, settings)


def _register_message() -> str:
    if settings.verification_strategy == "token":
        return "Registration successful. Please check your email to verify your account."
    return "Registration successful. Please check your email for the verification code."


# ─── Register / verify ──────────────────────────────────


@router.post("/register", response_model=Envelope[Message], status_code=201)
async def register(
    body: RegisterRequest,
    users: UserService = Depends(_users),
    verifier: VerificationService = Depends(_verifier),
):
    """Create an unverified account and send the verification secret."""
    user = await users.register(body.email, body.password, full_name=body.full_name)
    # Commits the user together with its secret, then mails it
    await verifier.issue(user)
    return ok(Message(message=_register_message()))


@router.post("/verify-code", response_model=Envelope[Message])
async def verify_code(
    body: VerifyCodeRequest,
    verifier: VerificationService = Depends(_verifier),
):
    await verifier.consume_code(body.email, body.code)
    return ok(Message(message="Email verified successfully"))


@router.api_route(
    "/verify-email",
    methods=["GET", "POST"],
    response_model=Envelope[VerifiedSession],
)
async def verify_email(
    token: Optional[str] = Query(None),
    body: Optional[VerifyEmailRequest] = Body(None),
    verifier: VerificationService = Depends(_verifier),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Consume a link token; the response logs the user straight in."""
    token = (body.token if body else None) or token
    if not token:
        raise ValidationError("Verification token is required")

    user = await verifier.consume_token(token)
    return ok(VerifiedSession(
        message="Email verified successfully",
        token=issuer.mint(user.id),
        user=UserRead.model_validate(user),
    ))


@router.post("/resend-verification", response_model=Envelope[Message])
async def resend_verification(
    body: EmailRequest,
    verifier: VerificationService = Depends(_verifier),
):
    await verifier.resend(body.email)
    return ok(Message(
        message="If the account exists and is not verified, a new verification email has been sent."
    ))


# ─── Login / sessions ───────────────────────────────────


@router.post("/login", response_model=Envelope[SessionRead])
async def login(
    body: LoginRequest,
    users: UserService = Depends(_users),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Login with email and password → session token."""
    user = await users.authenticate(body.email, body.password)
    return ok(SessionRead(
        token=issuer.mint(user.id),
        user=UserRead.model_validate(user),
    ))


@router.post("/refresh-token", response_model=Envelope[TokenRead])
async def refresh_token(
    identity: Identity = Depends(get_current_identity),
    users: UserService = Depends(_users),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Exchange a still-valid session token for a fresh one."""
    user = await users.get_or_404(identity.user_id)
    return ok(TokenRead(token=issuer.mint(user.id)))


# ─── Password reset ─────────────────────────────────────


@router.post("/forgot-password", response_model=Envelope[Message])
async def forgot_password(
    body: EmailRequest,
    verifier: VerificationService = Depends(_verifier),
):
    await verifier.issue_password_reset(body.email)
    return ok(Message(
        message="If an account exists for that email, a password reset link has been sent."
    ))


@router.post("/reset-password", response_model=Envelope[Message])
async def reset_password(
    body: ResetPasswordRequest,
    verifier: VerificationService = Depends(_verifier),
):
    await verifier.reset_password(body.token, body.password)
    return ok(Message(message="Password has been reset successfully"))


# ─── Profile ────────────────────────────────────────────


@router.get("/profile", response_model=Envelope[UserRead])
async def get_profile(
    identity: Identity = Depends(get_current_identity),
    users: UserService = Depends(_users),
):
    user = await users.get_or_404(identity.user_id)
    return ok(UserRead.model_validate(user))


@router.put("/profile", response_model=Envelope[UserRead])
async def update_profile(
    body: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    users: UserService = Depends(_users),
):
    user = await users.update_profile(
        identity.user_id, body.model_dump(exclude_unset=True)
    )
    return ok(UserRead.model_validate(user))


@router.put("/change-password", response_model=Envelope[Message])
async def change_password(
    body: ChangePasswordRequest,
    identity: Identity = Depends(get_current_identity),
    users: UserService = Depends(_users),
):
    await users.change_password(
        identity.user_id, body.current_password, body.new_password
    )
    return ok(Message(message="Password changed successfully"))
