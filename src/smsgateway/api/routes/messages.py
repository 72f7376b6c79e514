"""Message thread read and outbound send."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from smsgateway.api.auth import SubjectContext, get_current_subject
from smsgateway.api.dependencies import get_gateway
from smsgateway.domain.gateway import MessageGateway

router = APIRouter(prefix="/messages", tags=["messages"])


class SendMessageRequest(BaseModel):
    """Request body for POST /messages. Validated by the gateway (400).

    A numeric `to` is accepted and converted to text before normalization."""

    to: str | int | None = None
    body: str | None = None


@router.get("")
def list_messages(
    phone: str | None = Query(None, description="Customer phone, any format"),
    subject: SubjectContext = Depends(get_current_subject),
    gateway: MessageGateway = Depends(get_gateway),
) -> list[dict]:
    """Thread with one customer, oldest message first."""
    return [message.to_dict() for message in gateway.list_messages(phone)]


@router.post("")
def send_message(
    payload: SendMessageRequest | None = None,
    subject: SubjectContext = Depends(get_current_subject),
    gateway: MessageGateway = Depends(get_gateway),
) -> dict:
    """Send an SMS and record it in the conversation.

    Returns:
        {"ok": true, "sid": <carrier ref>, "message": {...}}
    """
    payload = payload or SendMessageRequest()
    result = gateway.send_message(payload.to, payload.body, subject)
    return {"ok": True, "sid": result.carrier_ref, "message": result.message.to_dict()}
