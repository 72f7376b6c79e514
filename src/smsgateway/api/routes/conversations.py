"""Conversation inbox: one entry per customer, most recently active first."""

from fastapi import APIRouter, Depends

from smsgateway.api.auth import SubjectContext, get_current_subject
from smsgateway.api.dependencies import get_gateway
from smsgateway.domain.gateway import MessageGateway

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("")
def list_conversations(
    subject: SubjectContext = Depends(get_current_subject),
    gateway: MessageGateway = Depends(get_gateway),
) -> list[dict]:
    return [summary.to_dict() for summary in gateway.list_conversations()]
