"""Outgoing mail for verification codes, verification links and reset links.

Two transports:
- SmtpMailer sends through a real SMTP server (smtplib, run in a worker
  thread so the event loop never blocks on the network).
- LogMailer writes the message to the structured log instead. It is used
  whenever DOCVAULT_SMTP_HOST is empty, so local development works
  without a mail server.

Callers treat delivery as fire-and-forget: VerificationService persists
the secret first and only logs a failed send.
"""

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

import structlog

from docvault.config import Settings

logger = structlog.get_logger()


@dataclass
class MailMessage:
    to: str
    subject: str
    body: str


class MailDeliveryError(Exception):
    """Raised when a message could not be handed to the transport."""


class Mailer:
    """Base mailer. Subclasses implement send()."""

    async def send(self, message: MailMessage) -> None:
        raise NotImplementedError

    async def send_verification_code(self, to: str, code: str, minutes: int) -> None:
        await self.send(MailMessage(
            to=to,
            subject="Your verification code",
            body=(
                f"Your verification code is: {code}\n\n"
                f"This code is valid for {minutes} minutes."
            ),
        ))

    async def send_verification_link(self, to: str, link: str, hours: int) -> None:
        await self.send(MailMessage(
            to=to,
            subject="Verify your email",
            body=(
                "Thanks for signing up. Open the link below to verify your email:\n\n"
                f"{link}\n\n"
                f"This link expires in {hours} hours. If you did not create an "
                "account, ignore this message."
            ),
        ))

    async def send_password_reset(self, to: str, link: str, minutes: int) -> None:
        await self.send(MailMessage(
            to=to,
            subject="Reset your password",
            body=(
                "We received a request to reset your password. Open the link "
                f"below to choose a new one:\n\n{link}\n\n"
                f"This link expires in {minutes} minutes."
            ),
        ))


class LogMailer(Mailer):
    """Development transport that logs the message instead of sending it."""

    async def send(self, message: MailMessage) -> None:
        logger.info(
            "mail.logged",
            to=message.to,
            subject=message.subject,
            body=message.body,
        )


class SmtpMailer(Mailer):
    """SMTP transport (STARTTLS + login when credentials are configured)."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        sender: str = "no-reply@docvault.local",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    def _build(self, message: MailMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = self.sender
        msg["To"] = message.to
        msg.set_content(message.body)
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)

    async def send(self, message: MailMessage) -> None:
        try:
            await asyncio.to_thread(self._send_sync, self._build(message))
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(f"SMTP delivery to {message.to} failed: {e}") from e
        logger.info("mail.sent", to=message.to, subject=message.subject)


def build_mailer(settings: Settings) -> Mailer:
    """Pick the transport from settings."""
    if not settings.smtp_configured:
        return LogMailer()
    return SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        sender=settings.mail_from,
    )
