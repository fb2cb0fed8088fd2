# backend/app/services/email_service.py
import asyncio
from typing import Any, Dict, List, Optional
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import aiosmtplib
from jinja2 import Template

from app.core.config import settings
from app.core.logging import logger


NOTIFICATION_TEMPLATE = Template("""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{{ title }}</title>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
                  color: white; padding: 20px; border-radius: 8px 8px 0 0; }
        .content { background: #f9f9f9; padding: 20px; border-radius: 0 0 8px 8px; }
        .button { display: inline-block; padding: 12px 24px; background: #667eea;
                 color: white; text-decoration: none; border-radius: 6px; margin: 16px 0; }
        .footer { text-align: center; margin-top: 20px; color: #666; font-size: 12px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>LVL UP Performance</h1>
            <h2>{{ title }}</h2>
        </div>
        <div class="content">
            <p>Hi {{ name }},</p>
            <p>{{ message }}</p>
            {% if details %}
            <ul>
                {% for key, value in details.items() %}
                <li><strong>{{ key }}:</strong> {{ value }}</li>
                {% endfor %}
            </ul>
            {% endif %}
            <a href="{{ dashboard_url }}" class="button">View Dashboard</a>
        </div>
        <div class="footer">
            <p>&copy; LVL UP Performance. All rights reserved.</p>
            <p>You can manage your notification preferences in your profile settings.</p>
        </div>
    </div>
</body>
</html>
""", autoescape=True)


class EmailService:
    """Service for sending emails"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.FROM_EMAIL
        self.timeout = settings.EMAIL_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host)

    async def send_email(
        self,
        to: List[str],
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send an email. Returns False (and logs) on any delivery failure."""
        if not self.is_configured:
            logger.warning("SMTP not configured, skipping email")
            return False

        try:
            message = MIMEMultipart('alternative')
            message['Subject'] = subject
            message['From'] = self.from_email
            message['To'] = ', '.join(to)

            if text_content:
                message.attach(MIMEText(text_content, 'plain'))

            message.attach(MIMEText(html_content, 'html'))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True,
                timeout=self.timeout,
            )

            logger.info(f"Email sent to {to}: {subject}")
            return True

        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to send email: {str(e)}")
            return False

    def render_notification(
        self,
        name: str,
        title: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        return NOTIFICATION_TEMPLATE.render(
            name=name or "there",
            title=title,
            message=message,
            details=details or {},
            dashboard_url=f"{settings.FRONTEND_URL}/dashboard",
        )

    async def send_notification_email(
        self,
        email: str,
        name: str,
        title: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Send the email rendition of an in-app notification"""
        html_content = self.render_notification(name, title, message, details)
        return await self.send_email([email], title, html_content, text_content=message)
