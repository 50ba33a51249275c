"""Domain error taxonomy.

Services raise these; the exception handlers registered in main.py turn
them into the {"success": false, "error": ...} envelope with the class's
status code. Anything not derived from AppError is treated as an
unexpected failure (500).
"""


class AppError(Exception):
    """Base class for errors that map to a client-facing HTTP status."""

    status_code = 500
    default_message = "Internal server error"
    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class InvalidFormat(ValidationError):
    default_message = "Invalid format"


class DuplicateEmail(AppError):
    status_code = 400
    default_message = "User already exists"


# ─── Verification secrets ───────────────────────────────


class VerificationError(AppError):
    status_code = 400
    default_message = "Invalid or expired code"


class VerificationNotFound(VerificationError):
    default_message = "Invalid or expired code"


class VerificationExpired(VerificationError):
    default_message = "Verification code has expired"


class AlreadyVerified(VerificationError):
    default_message = "Already verified"


class VerificationLocked(VerificationError):
    default_message = "Too many failed attempts. Please request a new code."


# ─── Authentication / authorization ─────────────────────


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid credentials"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Authentication required"
    headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(AppError):
    status_code = 403
    default_message = "Invalid token"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"
