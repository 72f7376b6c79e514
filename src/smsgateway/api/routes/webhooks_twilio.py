"""Twilio inbound SMS webhook.

Twilio retries on anything but a fast 2xx, so this route acknowledges with
an empty TwiML document no matter what happened while processing. Errors
are logged, never returned.
"""

from fastapi import APIRouter, Request, Response

from smsgateway.observability.correlation import get_correlation_id
from smsgateway.observability.logging import get_logger
from smsgateway.observability.redaction import safe_log_context
from smsgateway.twilio.carrier import empty_twiml

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

logger = get_logger(__name__)

_ACK = empty_twiml()


def _ack() -> Response:
    return Response(status_code=200, content=_ACK, media_type="text/xml")


@router.post("/twilio-sms")
async def twilio_sms_webhook(request: Request) -> Response:
    """Receive an inbound SMS (form-encoded From/Body).

    Returns:
        200 text/xml empty <Response/>, always.
    """
    try:
        form = await request.form()
        request.app.state.gateway.handle_inbound_webhook(form.get("From"), form.get("Body"))
    except Exception:
        logger.exception(
            "webhook processing failed",
            extra={"extra_fields": safe_log_context(correlationId=get_correlation_id())},
        )
    return _ack()
