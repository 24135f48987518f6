import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from backoffice.core.config import Settings
from backoffice.errors import ConfigurationError, NotificationError

logger = logging.getLogger(__name__)


def build_reset_link(frontend_url: str, reset_token: str) -> str:
    return f"{frontend_url.rstrip('/')}/reset-password?token={reset_token}"


class SMTPMailer:
    """Sends account emails through the configured SMTP relay."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        s = self.settings
        return all([s.smtp_host, s.smtp_port, s.smtp_user, s.smtp_password, s.smtp_from_email])

    def _build_password_reset_message(self, email: str, reset_link: str) -> MIMEMultipart:
        expire_minutes = self.settings.password_reset_token_expire_minutes

        message = MIMEMultipart("alternative")
        message["Subject"] = "Password Reset Request"
        message["From"] = self.settings.smtp_from_email
        message["To"] = email

        text = f"""
You requested a password reset for your back-office account.

Please click the following link to reset your password:
{reset_link}

This link will expire in {expire_minutes} minutes.

If you did not request this, please ignore this email. Your account remains secure.
        """
        html = f"""
<html>
  <body>
    <p>You requested a password reset for your back-office account.</p>
    <p>Please click the following link to reset your password:</p>
    <p><a href="{reset_link}">{reset_link}</a></p>
    <p>This link will expire in {expire_minutes} minutes.</p>
    <p>If you did not request this, please ignore this email. Your account remains secure.</p>
  </body>
</html>
        """

        message.attach(MIMEText(text, "plain"))
        message.attach(MIMEText(html, "html"))
        return message

    def _send_kwargs(self) -> dict:
        s = self.settings
        send_kwargs = {
            "hostname": s.smtp_host,
            "port": s.smtp_port,
            "username": s.smtp_user,
            "password": s.smtp_password,
        }

        # Port 465 uses direct TLS, everything else STARTTLS
        if s.smtp_use_tls:
            if s.smtp_port == 465:
                send_kwargs["use_tls"] = True
            else:
                send_kwargs["start_tls"] = True
        return send_kwargs

    async def send_password_reset_email(self, email: str, reset_link: str) -> None:
        """
        Send the password reset link to ``email``.

        Raises:
            ConfigurationError: If SMTP settings are incomplete.
            NotificationError: If the SMTP server cannot be reached or rejects the message.
        """
        if not self.is_configured:
            logger.warning("SMTP not configured - cannot send password reset email")
            raise ConfigurationError(
                "SMTP is not configured",
                public_message="Email service configuration error. Please contact support.",
            )

        message = self._build_password_reset_message(email, reset_link)
        try:
            await aiosmtplib.send(message, **self._send_kwargs())
        except aiosmtplib.SMTPAuthenticationError as e:
            logger.error("SMTP authentication failed - check SMTP credentials: %s", e)
            raise ConfigurationError(
                f"SMTP authentication failed: {e}",
                public_message="Email service configuration error. Please contact support.",
            ) from e
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery failed: %s", e)
            raise NotificationError(f"SMTP delivery failed: {e}") from e
