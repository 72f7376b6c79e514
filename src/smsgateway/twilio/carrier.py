"""Thin wrapper around the Twilio SDK.

Purpose:
- Keep twilio.* imports out of the domain layer (the gateway only sees the
  Carrier protocol).
- Never log recipient numbers or bodies (only hashes and lengths).
"""

from __future__ import annotations

from typing import Protocol

from twilio.rest import Client
from twilio.twiml.messaging_response import MessagingResponse

from smsgateway.observability.logging import get_logger
from smsgateway.observability.redaction import hash_identifier, safe_log_context

logger = get_logger(__name__)


class Carrier(Protocol):
    """Transmits an outbound SMS and returns the carrier's delivery reference."""

    def send(self, to: str, body: str) -> str:
        ...


class TwilioCarrier:
    """Carrier backed by a Twilio Messaging Service.

    Usage:
        carrier = TwilioCarrier(account_sid, auth_token, messaging_service_sid)
        sid = carrier.send("+15551234567", "hello")
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        messaging_service_sid: str,
        client: Client | None = None,
    ) -> None:
        self._messaging_service_sid = messaging_service_sid
        self._client = client or Client(account_sid, auth_token)

    def send(self, to: str, body: str) -> str:
        """Send an SMS through the messaging service.

        Raises:
            twilio.base.exceptions.TwilioRestException: Twilio rejected the
                request. Network failures propagate from the HTTP layer.
        """
        message = self._client.messages.create(
            to=to,
            body=body,
            messaging_service_sid=self._messaging_service_sid,
        )
        logger.info(
            "twilio accepted message",
            extra={
                "extra_fields": safe_log_context(
                    to_hash=hash_identifier(to),
                    body_len=len(body),
                    status=getattr(message, "status", None),
                )
            },
        )
        return message.sid


def empty_twiml() -> str:
    """Empty TwiML document: acknowledges a webhook without replying."""
    return str(MessagingResponse())
