"""
Email Service using Resend

Transactional email for notifications, password resets and new accounts.
Sending is best effort: failures are logged and reported as False.
"""

import asyncio
import logging
from html import escape

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key or None

_BASE_STYLE = """
    body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
    .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
    .header { color: #b91c1c; margin-bottom: 24px; }
    .message { background-color: #f9fafb; border-left: 4px solid #b91c1c; padding: 16px; margin: 16px 0; }
    .button { display: inline-block; background-color: #b91c1c; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""

NOTIFICATION_ACTION_LABELS = {
    "payment": "View Payment",
    "status_change": "View Application",
}


def _wrap(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_BASE_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>
            {body}
            <div class="footer">
                <p>GritSync - NCLEX Processing Services</p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent (or logged when no API key is configured)
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def build_action_url(application_id: str | None) -> str:
    """Link for a notification email button."""
    if application_id:
        return f"{settings.frontend_url}/applications/{application_id}"
    return f"{settings.frontend_url}/dashboard"


async def send_notification_email(
    to_email: str,
    user_name: str,
    notification_type: str,
    title: str,
    message: str,
    application_id: str | None = None,
) -> bool:
    """Send the email copy of an in-app notification."""
    safe_name = escape(user_name or "there")
    safe_title = escape(title)
    safe_message = escape(message)
    action_label = NOTIFICATION_ACTION_LABELS.get(notification_type, "View Details")
    action_url = build_action_url(application_id)

    body = f"""
            <p>Hello {safe_name},</p>
            <div class="message"><p>{safe_message}</p></div>
            <a href="{action_url}" class="button">{action_label}</a>
            <p>You can manage email preferences from your GritSync dashboard.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"GritSync: {title}",
        html_content=_wrap(safe_title, body),
    )


async def send_password_reset_email(to_email: str, user_name: str, token: str) -> bool:
    """Send the password reset link."""
    safe_name = escape(user_name or "there")
    reset_url = f"{settings.frontend_url}/reset-password?token={token}"

    body = f"""
            <p>Hello {safe_name},</p>
            <p>We received a request to reset your GritSync password.</p>
            <a href="{reset_url}" class="button">Reset Password</a>
            <p>Or copy and paste this link into your browser:</p>
            <p style="word-break: break-all; color: #3b82f6;">{reset_url}</p>
            <p><strong>This link expires in {settings.password_reset_expire_minutes} minutes.</strong></p>
            <p>If you didn't request a password reset, you can safely ignore this email.</p>
    """
    return await send_email(
        to_email=to_email,
        subject="Reset your GritSync password",
        html_content=_wrap("Password Reset", body),
    )


async def send_welcome_email(to_email: str, user_name: str, grit_id: str | None) -> bool:
    """Welcome a newly registered client."""
    safe_name = escape(user_name or "there")
    grit_line = f"<p>Your GritSync ID is <strong>{escape(grit_id)}</strong>.</p>" if grit_id else ""

    body = f"""
            <p>Hello {safe_name},</p>
            <p>Your GritSync account has been created.</p>
            {grit_line}
            <a href="{settings.frontend_url}/dashboard" class="button">Go to Dashboard</a>
    """
    return await send_email(
        to_email=to_email,
        subject="Welcome to GritSync",
        html_content=_wrap("Welcome to GritSync", body),
    )
