"""Mailer tests — transport selection and SMTP failure wrapping."""

import smtplib

import pytest

from docvault.config import Settings
from docvault.services.mailer import (
    LogMailer,
    MailDeliveryError,
    MailMessage,
    SmtpMailer,
    build_mailer,
)


def test_build_mailer_without_smtp_logs():
    assert isinstance(build_mailer(Settings(smtp_host="")), LogMailer)


def test_build_mailer_with_smtp():
    mailer = build_mailer(Settings(smtp_host="smtp.example.com", smtp_port=2525))
    assert isinstance(mailer, SmtpMailer)
    assert mailer.host == "smtp.example.com"
    assert mailer.port == 2525


@pytest.mark.asyncio
async def test_log_mailer_never_fails():
    await LogMailer().send_verification_code("a@example.com", "123456", 15)


class _FakeSMTP:
    sent: list = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def send_message(self, msg):
        _FakeSMTP.sent.append(msg)


@pytest.mark.asyncio
async def test_smtp_mailer_sends(monkeypatch):
    _FakeSMTP.sent = []
    monkeypatch.setattr(smtplib, "SMTP", _FakeSMTP)
    mailer = SmtpMailer("smtp.example.com", username="u", password="p")

    await mailer.send_password_reset("a@example.com", "http://x/reset-password?token=t", 60)

    assert len(_FakeSMTP.sent) == 1
    msg = _FakeSMTP.sent[0]
    assert msg["To"] == "a@example.com"
    assert msg["Subject"] == "Reset your password"
    assert "reset-password?token=t" in msg.get_content()


@pytest.mark.asyncio
async def test_smtp_mailer_wraps_connection_errors(monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    mailer = SmtpMailer("smtp.example.com")

    with pytest.raises(MailDeliveryError):
        await mailer.send(MailMessage(to="a@example.com", subject="s", body="b"))
