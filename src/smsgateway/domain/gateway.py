"""Message gateway: the inbound and outbound message paths.

Inbound:  normalize sender -> append (sync) -> activity sync (detached)
Outbound: check caller/input/config -> carrier send -> append -> activity sync

The store append is the only step the caller waits on besides the carrier.
A message is appended only after the carrier accepts it, so a failed send
leaves no trace in the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from smsgateway.domain.errors import (
    AuthenticationError,
    ConfigurationError,
    DeliveryError,
    ValidationError,
)
from smsgateway.domain.messages import ConversationSummary, Direction, Message, MessageDraft
from smsgateway.domain.phone import has_digits, is_plausible, normalize
from smsgateway.infra.repositories.message_repository import ConversationStore
from smsgateway.observability.logging import get_logger
from smsgateway.observability.redaction import hash_identifier, safe_log_context
from smsgateway.sync.activity_sync import ActivityEvent, ActivitySync

if TYPE_CHECKING:
    from smsgateway.api.auth import SubjectContext
    from smsgateway.twilio.carrier import Carrier

logger = get_logger(__name__)


@dataclass(frozen=True)
class SendResult:
    carrier_ref: str
    message: Message


class MessageGateway:
    """Composes phone normalization, the store, the carrier and CRM sync."""

    def __init__(
        self,
        store: ConversationStore,
        activity_sync: ActivitySync,
        carrier: Carrier | None = None,
    ) -> None:
        self._store = store
        self._activity_sync = activity_sync
        self._carrier = carrier

    def handle_inbound_webhook(self, raw_from: str | None, raw_body: str | None) -> Message:
        """Record an inbound SMS.

        Raises:
            ValidationError: No sender number (missing or without digits).
            Exception: Whatever the store raises; the route turns every
                error into its mandatory acknowledgement.
        """
        identity = normalize(raw_from)
        if not has_digits(identity):
            raise ValidationError("From required")

        message = self._store.append(
            MessageDraft(identity=identity, direction=Direction.INBOUND, body=raw_body or "")
        )
        logger.info(
            "inbound message stored",
            extra={
                "extra_fields": safe_log_context(
                    message_id=message.id,
                    from_hash=hash_identifier(identity),
                    body_len=len(message.body),
                    plausible=is_plausible(identity),
                )
            },
        )
        self._record_activity(message)
        return message

    def send_message(
        self,
        to_raw: str | int | None,
        body: str | None,
        auth_context: SubjectContext | None,
    ) -> SendResult:
        """Send an SMS on behalf of an authenticated agent.

        Raises:
            AuthenticationError: No authenticated subject.
            ValidationError: Missing recipient or body, or a recipient
                without any digits.
            ConfigurationError: No carrier configured.
            DeliveryError: Carrier rejected or failed the send.
        """
        if auth_context is None:
            raise AuthenticationError("Invalid token")
        if to_raw is not None:
            to_raw = str(to_raw)
        if not to_raw or not to_raw.strip() or not body:
            raise ValidationError("to and body required")
        identity = normalize(to_raw)
        if not has_digits(identity):
            raise ValidationError("to must be a phone number")
        if self._carrier is None:
            raise ConfigurationError("Twilio not configured")

        log_ctx = safe_log_context(
            subject_id=auth_context.subject_id,
            to_hash=hash_identifier(identity),
            body_len=len(body),
        )

        try:
            carrier_ref = self._carrier.send(identity, body)
        except Exception as e:
            logger.error(
                "send failed",
                extra={"extra_fields": safe_log_context(**log_ctx, error_type=type(e).__name__)},
            )
            raise DeliveryError("Send failed") from e

        message = self._store.append(
            MessageDraft(identity=identity, direction=Direction.OUTBOUND, body=body)
        )
        logger.info(
            "outbound message stored",
            extra={"extra_fields": safe_log_context(**log_ctx, message_id=message.id)},
        )
        self._record_activity(message)
        return SendResult(carrier_ref=carrier_ref, message=message)

    def list_conversations(self) -> list[ConversationSummary]:
        return self._store.list_conversations()

    def list_messages(self, raw_phone: str | None) -> list[Message]:
        return self._store.list_messages(normalize(raw_phone))

    def _record_activity(self, message: Message) -> None:
        self._activity_sync.record(
            ActivityEvent(
                direction=message.direction,
                counterparty=message.identity,
                body=message.body,
                timestamp=message.created_at,
            )
        )
