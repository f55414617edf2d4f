"""
Postmark Email Service
Thin wrapper around the Postmark transactional email API
"""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..config import DEFAULT_POSTMARK_API_URL, Settings

logger = logging.getLogger(__name__)

ICS_ATTACHMENT_NAME = "invite.ics"


class EmailConfigurationError(Exception):
    """Raised when the email provider is not configured"""

    pass


class PostmarkError(Exception):
    """Raised when Postmark rejects a send request"""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Postmark send failed: {status_code} - {message}")


@dataclass(frozen=True)
class OutboundEmail:
    from_address: str
    to: str
    subject: str
    html_body: str
    text_body: Optional[str] = None
    ics_content: Optional[str] = None
    ics_method: str = "REQUEST"


def build_ics_attachment(ics_content: str, method: str = "REQUEST") -> dict[str, str]:
    """Base64 encode an ICS document as a Postmark attachment"""
    return {
        "Name": ICS_ATTACHMENT_NAME,
        "Content": base64.b64encode(ics_content.encode("utf-8")).decode("ascii"),
        "ContentType": f'text/calendar; method={method}; charset="utf-8"',
    }


class PostmarkClient:
    """Service for sending email through Postmark"""

    def __init__(
        self,
        server_token: Optional[str],
        api_url: str = DEFAULT_POSTMARK_API_URL,
        message_stream: str = "outbound",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.server_token = server_token
        self.api_url = api_url
        self.message_stream = message_stream
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "PostmarkClient":
        return cls(
            server_token=settings.postmark_server_api_token,
            api_url=settings.postmark_api_url,
            message_stream=settings.postmark_message_stream,
            timeout=settings.postmark_timeout_seconds,
        )

    def build_message(self, email: OutboundEmail) -> dict[str, Any]:
        message: dict[str, Any] = {
            "From": email.from_address,
            "To": email.to,
            "Subject": email.subject,
            "HtmlBody": email.html_body,
            "MessageStream": self.message_stream,
        }

        if email.text_body:
            message["TextBody"] = email.text_body

        if email.ics_content:
            message["Attachments"] = [build_ics_attachment(email.ics_content, email.ics_method)]

        return message

    async def send_email(self, email: OutboundEmail) -> dict[str, Any]:
        """
        Send one email. Provider errors are raised, never retried here.

        Raises:
            EmailConfigurationError: If the server token is missing
            PostmarkError: If Postmark responds with a non-2xx status
        """
        if not self.server_token:
            logger.error("❌ POSTMARK_SERVER_API_TOKEN not configured")
            raise EmailConfigurationError("Missing POSTMARK_SERVER_API_TOKEN environment variable")

        message = self.build_message(email)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.api_url,
                headers={
                    "X-Postmark-Server-Token": self.server_token,
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                json=message,
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {"response": data}

        if not response.is_success:
            detail = data.get("Message") or (json.dumps(data) if data else response.text)
            logger.error(f"❌ Postmark send failed: {response.status_code} - {detail}")
            raise PostmarkError(response.status_code, detail)

        logger.info(f"📧 Postmark accepted email to {email.to}: {data.get('MessageID')}")
        return data
