# 📄 File: app/modules/user_management/infrastructure/external/email_service.py
# 🧭 Purpose (Layman Explanation):
# Sends account emails, such as "confirm your address" and "reset your password" links.
#
# 🧪 Purpose (Technical Summary):
# SMTP email delivery (stdlib smtplib run in a worker thread so the event loop is never
# blocked). When EMAIL_ENABLED is off messages are logged instead of sent.
#
# 🔗 Dependencies:
# - smtplib / email.mime (SMTP delivery)
# - app.shared.config.settings (SMTP configuration)
#
# 🔄 Connected Modules / Calls From:
# - app.modules.user_management.domain.services.auth_service (confirmation and reset emails)
# - app.modules.user_management.presentation.dependencies (wiring)

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from app.shared.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the SMTP server rejects or cannot receive a message."""


class EmailService:
    """
    Sends HTML emails over SMTP.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def send_email(self, to: str, subject: str, html_body: str) -> None:
        """
        Send an email.

        Args:
            to: Recipient address
            subject: Subject line
            html_body: HTML content

        Raises:
            EmailDeliveryError: If SMTP delivery fails
        """
        if not self.settings.EMAIL_ENABLED:
            logger.info(f"Email delivery disabled; would send '{subject}' to {to}")
            return

        message = MIMEMultipart("alternative")
        message["From"] = self.settings.EMAIL_FROM
        message["To"] = to
        message["Subject"] = subject
        message.attach(MIMEText(html_body, "html"))

        try:
            await asyncio.to_thread(self._send, to, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{subject}' to {to}: {e}")
            raise EmailDeliveryError(str(e)) from e
        logger.info(f"Email '{subject}' sent to {to}")

    def _send(self, to: str, message: MIMEMultipart) -> None:
        with smtplib.SMTP(self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=30) as server:
            if self.settings.SMTP_USE_TLS:
                server.starttls()
            if self.settings.SMTP_USERNAME and self.settings.SMTP_PASSWORD:
                server.login(self.settings.SMTP_USERNAME, self.settings.SMTP_PASSWORD)
            server.sendmail(self.settings.EMAIL_FROM, [to], message.as_string())
