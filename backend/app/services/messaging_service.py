"""
Disc Rescue Backend — Twilio Messaging Service
===============================================

What:  Webhook signature validation and outbound SMS/MMS through Twilio.
How:   Wraps an injected `twilio.rest.Client`. The Twilio SDK is synchronous,
       so every send runs in the Starlette threadpool.
Who:   Used by SmsService (webhook replies, opt-in invitations, contact cards)
       and by POST /api/sms.

Signature validation:
    Twilio signs the exact URL configured on the phone number plus the posted
    form parameters. Validation always uses settings.twilio_webhook_url, never
    the URL the request arrived on, because proxies rewrite the latter.
"""

import logging
from typing import Mapping, Optional

from starlette.concurrency import run_in_threadpool
from twilio.base.exceptions import TwilioException
from twilio.request_validator import RequestValidator
from twilio.rest import Client

from app.exceptions import MessagingError

logger = logging.getLogger(__name__)


class TwilioMessagingService:
    """Sends messages from the configured number and checks webhook signatures."""

    def __init__(
        self,
        client: Optional[Client],
        send_from: str,
        auth_token: str,
        webhook_url: str,
        vcard_url: str = "",
    ):
        self.client = client
        self.send_from = send_from
        self.webhook_url = webhook_url
        self.vcard_url = vcard_url
        self._validator = RequestValidator(auth_token) if auth_token else None

    @property
    def is_configured(self) -> bool:
        return self.client is not None and bool(self.send_from)

    def validate_request(self, params: Mapping[str, str], signature: Optional[str]) -> bool:
        """True only when the X-Twilio-Signature matches the posted params."""
        if self._validator is None or not signature:
            return False
        return self._validator.validate(self.webhook_url, dict(params), signature)

    async def send_sms(self, to: str, body: str) -> str:
        """
        Send a plain text message.

        Returns:
            The Twilio message SID.

        Raises:
            MessagingError: Twilio is not configured or rejected the message.
        """
        return await self._create(to=to, body=body)

    async def send_vcard(self, to: str, body: str) -> str:
        """Send an MMS with the contact card attached."""
        media_url = [self.vcard_url] if self.vcard_url else None
        return await self._create(to=to, body=body, media_url=media_url)

    async def _create(self, to: str, body: str, media_url=None) -> str:
        if not self.is_configured:
            raise MessagingError(context={"reason": "twilio_not_configured"})

        kwargs = {"from_": self.send_from, "to": to, "body": body}
        if media_url:
            kwargs["media_url"] = media_url

        try:
            message = await run_in_threadpool(self.client.messages.create, **kwargs)
        except TwilioException as e:
            logger.error("Twilio send to %s failed: %s", to, str(e))
            raise MessagingError(
                context={"to": to, "error_type": type(e).__name__},
            ) from e

        logger.info("Sent %s to %s (sid=%s)", "MMS" if media_url else "SMS", to, message.sid)
        return message.sid
