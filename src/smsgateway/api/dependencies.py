"""FastAPI dependencies resolving services wired by create_app()."""

from fastapi import Request

from smsgateway.domain.gateway import MessageGateway


def get_gateway(request: Request) -> MessageGateway:
    return request.app.state.gateway
