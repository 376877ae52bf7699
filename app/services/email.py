import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from urllib.parse import urlencode

import aiosmtplib

from app.core.config import settings

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    """Raised when a message could not be handed to the SMTP server."""

    pass


def _smtp_configured() -> bool:
    return all([
        settings.smtp_host,
        settings.smtp_port,
        settings.smtp_user,
        settings.smtp_password,
        settings.smtp_from_email,
    ])


def _link(path: str, email: str) -> str | None:
    """Absolute link for the frontend, or None when FRONTEND_URL is not set."""
    if not settings.frontend_url:
        return None
    query = urlencode({"email": email})
    return f"{settings.frontend_url.rstrip('/')}{path}?{query}"


async def _send(to: str, subject: str, text: str, html: str) -> None:
    if not _smtp_configured():
        # SMTP not configured - log or raise error
        logger.warning("SMTP not configured - cannot send '%s' to %s", subject, to)
        raise ValueError("SMTP is not configured. Please configure SMTP settings in .env file.")

    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = settings.smtp_from_email
    message["To"] = to
    message.attach(MIMEText(text, "plain"))
    message.attach(MIMEText(html, "html"))

    send_kwargs = {
        "hostname": settings.smtp_host,
        "port": settings.smtp_port,
        "username": settings.smtp_user,
        "password": settings.smtp_password,
    }

    # Handle TLS based on smtp_use_tls configuration
    if settings.smtp_use_tls:
        # Port 587 uses STARTTLS, port 465 uses direct TLS
        if settings.smtp_port == 465:
            send_kwargs["use_tls"] = True
        else:
            send_kwargs["start_tls"] = True

    try:
        await aiosmtplib.send(message, **send_kwargs)
    except (aiosmtplib.SMTPException, OSError) as e:
        raise MailDeliveryError(str(e)) from e


async def send_account_activation_email(email: str, name: str, activation_token: str) -> None:
    """
    Send the account activation email.

    Args:
        email: User's email address
        name: User's display name
        activation_token: Plaintext activation token (only its digest is stored)
    """
    link = _link(f"/account-activations/{activation_token}", email)
    if link:
        text = f"""
Hi {name},

Welcome! Click on the link below to activate your account:
{link}
        """
        html = f"""
<html>
  <body>
    <p>Hi {escape(name)},</p>
    <p>Welcome! Click on the link below to activate your account:</p>
    <p><a href="{link}">Activate</a></p>
  </body>
</html>
        """
    else:
        text = f"""
Hi {name},

Welcome! Your account activation token is:
{activation_token}
        """
        html = f"""
<html>
  <body>
    <p>Hi {escape(name)},</p>
    <p>Welcome! Your account activation token is:</p>
    <p><code>{activation_token}</code></p>
  </body>
</html>
        """
    await _send(email, "Account activation", text, html)


async def send_password_reset_email(email: str, reset_token: str) -> None:
    """
    Send password reset email to user.

    Args:
        email: User's email address
        reset_token: Plaintext reset token (only its digest is stored)
    """
    expires = settings.password_reset_expire_minutes
    link = _link(f"/password-resets/{reset_token}", email)
    if link:
        text = f"""
You requested a password reset for your account.

Please click the following link to reset your password:
{link}

This link will expire in {expires} minutes.

If you did not request this, please ignore this email.
        """
        html = f"""
<html>
  <body>
    <p>You requested a password reset for your account.</p>
    <p>Please click the following link to reset your password:</p>
    <p><a href="{link}">{link}</a></p>
    <p>This link will expire in {expires} minutes.</p>
    <p>If you did not request this, please ignore this email.</p>
  </body>
</html>
        """
    else:
        text = f"""
You requested a password reset for your account.

Your password reset token is:
{reset_token}

This token will expire in {expires} minutes.

If you did not request this, please ignore this email.
        """
        html = f"""
<html>
  <body>
    <p>You requested a password reset for your account.</p>
    <p>Your password reset token is:</p>
    <p><code>{reset_token}</code></p>
    <p>This token will expire in {expires} minutes.</p>
    <p>If you did not request this, please ignore this email.</p>
  </body>
</html>
        """
    await _send(email, "Password Reset Request", text, html)
