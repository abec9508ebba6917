"""Email service for verification and password reset links"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from ...core.config import Settings

logger = logging.getLogger(__name__)


class EmailService:
    """Fire-and-forget mail delivery. Send methods log failures and return False."""

    def __init__(self, settings: Settings):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD
        self.smtp_use_tls = settings.SMTP_USE_TLS
        self.from_email = settings.FROM_EMAIL
        self.from_name = settings.FROM_NAME
        self.frontend_url = settings.FRONTEND_URL.rstrip("/")

    async def send_email(self, to_email: str, subject: str, html_content: str, text_content: Optional[str] = None) -> bool:
        """Send email with HTML content"""
        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            await self._send_smtp_email(msg)

            logger.info("Email sent to %s: %s", to_email, subject)
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error("Error sending email to %s: %s", to_email, e)
            return False

    async def _send_smtp_email(self, msg: MIMEMultipart):
        """Send email via SMTP"""
        def send_sync():
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                if self.smtp_use_tls:
                    server.starttls()
                if self.smtp_username and self.smtp_password:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

        # Run in thread pool to avoid blocking
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, send_sync)

    async def send_verification_email(self, to_email: str, verification_token: str) -> bool:
        """Send email verification email"""
        verification_url = f"{self.frontend_url}/verify-email?token={verification_token}"

        return await self.send_email(
            to_email=to_email,
            subject="Verify your email address",
            text_content=f"Please verify your email address by clicking this link: {verification_url}",
            html_content=(
                f'<p>Please verify your email address by clicking this link: '
                f'<a href="{verification_url}">{verification_url}</a></p>'
            )
        )

    async def send_password_reset_email(self, to_email: str, reset_token: str) -> bool:
        """Send password reset email"""
        reset_url = f"{self.frontend_url}/reset-password?token={reset_token}"

        return await self.send_email(
            to_email=to_email,
            subject="Reset your password",
            text_content=f"Reset your password by clicking this link: {reset_url}. This link is valid for 1 hour.",
            html_content=(
                f'<p>Reset your password by clicking this link: <a href="{reset_url}">{reset_url}</a>. '
                f'This link is valid for 1 hour.</p>'
            )
        )
