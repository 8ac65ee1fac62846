"""
Brevo Transactional Email Service

Sends Scholaco's welcome, deadline-reminder and submission-confirmation
emails through Brevo's SMTP API.

Usage:
    notifier = BrevoService()
    result = await notifier.send_welcome_email("ada@example.com", "Ada Lovelace")

    if not result.ok:
        logger.warning("Welcome email not sent: %s", result.error)
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

import httpx

from scholaco import config, email_templates
from scholaco.errors import Result, TransportFailure

logger = logging.getLogger(__name__)


class BrevoService:
    """Thin async client for ``POST /v3/smtp/email``."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        sender_email: Optional[str] = None,
        sender_name: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_key: Brevo API key (defaults to BREVO_API_KEY)
            sender_email: Verified sender address (defaults to BREVO_SENDER_EMAIL)
            sender_name: Display name of the sender (defaults to BREVO_SENDER_NAME)
            transport: Optional httpx transport, used to stub the API
        """
        self.api_key = api_key if api_key is not None else config.BREVO_API_KEY
        self.sender_email = sender_email or config.BREVO_SENDER_EMAIL
        self.sender_name = sender_name or config.BREVO_SENDER_NAME
        self._transport = transport

        if not self.is_available():
            logger.warning("BrevoService disabled - no API key configured")

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def send(self, to_email: str, subject: str, html_content: str) -> Result[Dict[str, Any]]:
        """Send one email; failures come back as ``TransportFailure``."""
        if not self.is_available():
            return Result.failure(TransportFailure("Brevo API not configured"))

        payload = {
            "sender": {"email": self.sender_email, "name": self.sender_name},
            "to": [{"email": to_email}],
            "subject": subject,
            "htmlContent": html_content,
        }
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "api-key": self.api_key,
        }

        try:
            async with httpx.AsyncClient(
                timeout=config.BREVO_REQUEST_TIMEOUT, transport=self._transport
            ) as client:
                response = await client.post(config.BREVO_API_URL, json=payload, headers=headers)
        except httpx.TimeoutException:
            logger.error("Brevo request timed out sending %r", subject)
            return Result.failure(TransportFailure("Email provider timed out"))
        except httpx.HTTPError as e:
            logger.error("Brevo request failed sending %r: %s", subject, e)
            return Result.failure(TransportFailure("Email provider unreachable"))

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}

        if response.status_code >= 400:
            logger.error(
                "Brevo rejected email %r: status=%s body=%s",
                subject,
                response.status_code,
                str(body)[:200],
            )
            return Result.failure(
                TransportFailure(f"Email provider returned {response.status_code}")
            )

        logger.info("Email sent to %s: %s", to_email, subject)
        return Result.success(body)

    async def send_welcome_email(self, user_email: str, user_name: str) -> Result[Dict[str, Any]]:
        subject, html = email_templates.welcome(user_name)
        return await self.send(user_email, subject, html)

    async def send_deadline_reminder(
        self,
        user_email: str,
        app_name: str,
        organization: Optional[str],
        deadline: date,
        days_left: int,
    ) -> Result[Dict[str, Any]]:
        subject, html = email_templates.deadline_reminder(
            app_name, organization, deadline, days_left
        )
        return await self.send(user_email, subject, html)

    async def send_application_submitted(
        self, user_email: str, app_name: str
    ) -> Result[Dict[str, Any]]:
        subject, html = email_templates.application_submitted(app_name)
        return await self.send(user_email, subject, html)
