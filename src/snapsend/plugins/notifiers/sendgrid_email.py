"""SendGrid email notifier plugin."""

from __future__ import annotations

import asyncio
import logging
import os

import aiohttp
from pydantic import BaseModel, Field

from snapsend.interfaces import Notifier
from snapsend.models.notification import EmailMessage
from snapsend.plugins.registry import PluginType, plugin

logger = logging.getLogger(__name__)


class SendGridEmailConfig(BaseModel):
    """SendGrid email notifier configuration."""

    api_key_env: str = "SENDGRID_API_KEY"
    from_email: str = "noreply@readytoruncq.com.au"
    from_name: str | None = None
    to_emails: list[str] = Field(default_factory=lambda: ["jed@readytoruncq.com.au"], min_length=1)
    cc_emails: list[str] = Field(default_factory=list)
    bcc_emails: list[str] = Field(default_factory=list)
    request_timeout_s: float = 10.0
    api_base: str = "https://api.sendgrid.com/v3"


@plugin(plugin_type=PluginType.NOTIFIER, name="sendgrid_email")
class SendGridEmailNotifier(Notifier):
    """SendGrid email notifier for upload notifications."""

    config_cls = SendGridEmailConfig

    @classmethod
    def create(cls, config: SendGridEmailConfig) -> Notifier:
        return cls(config)

    def __init__(self, config: SendGridEmailConfig) -> None:
        self._api_key_env = config.api_key_env
        self._from_email = config.from_email
        self._from_name = config.from_name
        self._to_emails = list(config.to_emails)
        self._cc_emails = list(config.cc_emails)
        self._bcc_emails = list(config.bcc_emails)
        self._timeout_s = float(config.request_timeout_s)
        self._api_base = config.api_base.rstrip("/")

        self._api_key = os.getenv(self._api_key_env)
        if not self._api_key:
            logger.warning("SendGrid API key not found in env: %s", self._api_key_env)

        self._session: aiohttp.ClientSession | None = None
        self._shutdown_called = False

    async def send(self, message: EmailMessage) -> None:
        """Send the email via the SendGrid v3 mail API."""
        if self._shutdown_called:
            raise RuntimeError("Notifier has been shut down")
        if not self._api_key:
            raise RuntimeError("SendGrid API key missing from environment")
        if not message.text and not message.html:
            raise RuntimeError("SendGrid email requires text or html content")

        payload = self._build_payload(message.subject, message.text, message.html)
        headers = {"Authorization": f"Bearer {self._api_key}"}
        url = f"{self._api_base}/mail/send"
        session = await self._get_session()

        async with session.post(url, json=payload, headers=headers) as response:
            if response.status >= 400:
                details = await response.text()
                logger.debug("SendGrid API error details: %s", details)
                raise RuntimeError(f"SendGrid email send failed: HTTP {response.status}")

        logger.info(
            "Sent SendGrid email: to=%s ref_code=%s object=%s",
            ",".join(self._to_emails),
            message.ref_code,
            message.object_name,
        )

    async def ping(self) -> bool:
        """Health check - verify SendGrid credentials and connectivity."""
        if self._shutdown_called or not self._api_key:
            return False

        url = f"{self._api_base}/user/profile"
        headers = {"Authorization": f"Bearer {self._api_key}"}
        session = await self._get_session()
        try:
            async with session.get(url, headers=headers) as response:
                if response.status >= 400:
                    return False
                await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("SendGrid ping failed: %s", e)
            return False
        return True

    async def shutdown(self, timeout: float | None = None) -> None:
        """Cleanup resources - close HTTP session."""
        _ = timeout
        if self._shutdown_called:
            return
        self._shutdown_called = True

        if self._session and not self._session.closed:
            await self._session.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def _build_payload(self, subject: str, text_body: str, html_body: str) -> dict[str, object]:
        personalization: dict[str, object] = {
            "to": [{"email": email} for email in self._to_emails],
            "subject": subject,
        }
        if self._cc_emails:
            personalization["cc"] = [{"email": email} for email in self._cc_emails]
        if self._bcc_emails:
            personalization["bcc"] = [{"email": email} for email in self._bcc_emails]

        sender: dict[str, str] = {"email": self._from_email}
        if self._from_name:
            sender["name"] = self._from_name

        content: list[dict[str, str]] = []
        if text_body:
            content.append({"type": "text/plain", "value": text_body})
        if html_body:
            content.append({"type": "text/html", "value": html_body})

        return {
            "personalizations": [personalization],
            "from": sender,
            "content": content,
        }
