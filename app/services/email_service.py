import html
import logging

import requests

from app.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Transactional e-mail through the Brevo HTTP API."""

    def __init__(self, api_key: str = None, api_url: str = None):
        self.api_key = api_key if api_key is not None else settings.BREVO_API_KEY
        self.api_url = api_url or settings.BREVO_API_URL

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, to_email: str, subject: str, html_content: str, to_name: str = None) -> bool:
        """
        Send one e-mail.

        Returns:
            True if Brevo accepted the message, False otherwise. Failures are
            logged and never raised, since callers run this as a background task.
        """
        if not self.enabled:
            logger.warning("BREVO_API_KEY is not set; skipping e-mail to %s", to_email)
            return False

        recipient = {"email": to_email}
        if to_name:
            recipient["name"] = to_name

        try:
            response = requests.post(
                self.api_url,
                headers={
                    "api-key": self.api_key,
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                json={
                    "sender": {
                        "name": settings.EMAIL_SENDER_NAME,
                        "email": settings.EMAIL_SENDER_ADDRESS,
                    },
                    "to": [recipient],
                    "subject": subject,
                    "htmlContent": html_content,
                },
                timeout=settings.EMAIL_TIMEOUT_SECONDS,
            )
        except requests.RequestException:
            logger.exception("Brevo request failed for %s", to_email)
            return False

        if response.status_code not in (200, 201, 202):
            logger.error("Brevo error %s: %s", response.status_code, response.text)
            return False

        logger.info("Sent '%s' e-mail to %s", subject, to_email)
        return True

    def send_password_reset(self, to_email: str, name: str, token: str) -> bool:
        """Mail the reset link pointing at the frontend reset page."""
        reset_url = html.escape(f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={token}")
        body = f"""
            <h2>Reset your {settings.PROJECT_NAME} password</h2>
            <p>Hi {html.escape(name)},</p>
            <p>We received a request to reset your password. Click the link below to choose a new one:</p>
            <p><a href="{reset_url}">Reset password</a></p>
            <p>This link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.
            If you did not request a reset you can ignore this e-mail.</p>
        """
        return self.send(to_email, f"{settings.PROJECT_NAME} password reset", body, to_name=name)
