import asyncio

import aiosmtplib
import pytest

from backoffice.core.config import Settings
from backoffice.errors import ConfigurationError, NotificationError
from backoffice.services.email import SMTPMailer, build_reset_link

LINK = "http://localhost:3000/reset-password?token=abc"


def _smtp_settings(**overrides) -> Settings:
    values = {
        "ENVIRONMENT": "test",
        "SMTP_HOST": "smtp.example.com",
        "SMTP_PORT": 587,
        "SMTP_USER": "mailer",
        "SMTP_PASSWORD": "secret",
        "SMTP_FROM_EMAIL": "noreply@example.com",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def sent(monkeypatch):
    calls = []

    async def fake_send(message, **kwargs):
        calls.append((message, kwargs))

    monkeypatch.setattr(aiosmtplib, "send", fake_send)
    return calls


def _failing_send(monkeypatch, error):
    async def fake_send(message, **kwargs):
        raise error

    monkeypatch.setattr(aiosmtplib, "send", fake_send)


def test_build_reset_link():
    assert build_reset_link("http://localhost:3000/", "abc") == LINK
    assert build_reset_link("http://localhost:3000", "abc") == LINK


def test_send_uses_starttls_on_submission_port(sent):
    mailer = SMTPMailer(_smtp_settings())

    asyncio.run(mailer.send_password_reset_email("a@b.com", LINK))

    message, kwargs = sent[0]
    assert message["To"] == "a@b.com"
    assert message["From"] == "noreply@example.com"
    assert LINK in message.as_string()
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["start_tls"] is True
    assert "use_tls" not in kwargs


def test_send_uses_implicit_tls_on_port_465(sent):
    mailer = SMTPMailer(_smtp_settings(SMTP_PORT=465))

    asyncio.run(mailer.send_password_reset_email("a@b.com", LINK))

    _, kwargs = sent[0]
    assert kwargs["use_tls"] is True
    assert "start_tls" not in kwargs


def test_unconfigured_mailer_raises_configuration_error(sent):
    mailer = SMTPMailer(Settings(ENVIRONMENT="test"))

    assert not mailer.is_configured
    with pytest.raises(ConfigurationError) as exc_info:
        asyncio.run(mailer.send_password_reset_email("a@b.com", LINK))
    assert exc_info.value.public_message == (
        "Email service configuration error. Please contact support."
    )
    assert sent == []


def test_authentication_failure_is_configuration_error(monkeypatch):
    _failing_send(monkeypatch, aiosmtplib.SMTPAuthenticationError(535, "bad credentials"))
    mailer = SMTPMailer(_smtp_settings())

    with pytest.raises(ConfigurationError):
        asyncio.run(mailer.send_password_reset_email("a@b.com", LINK))


@pytest.mark.parametrize(
    "error",
    [
        aiosmtplib.SMTPConnectError("connection refused"),
        aiosmtplib.SMTPRecipientsRefused([]),
        ConnectionRefusedError(),
    ],
)
def test_delivery_failure_is_notification_error(monkeypatch, error):
    _failing_send(monkeypatch, error)
    mailer = SMTPMailer(_smtp_settings())

    with pytest.raises(NotificationError) as exc_info:
        asyncio.run(mailer.send_password_reset_email("a@b.com", LINK))
    assert exc_info.value.public_message == (
        "Email service temporarily unavailable. Please try again later."
    )
