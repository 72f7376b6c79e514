"""Auth routes - credential issuance."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from smsgateway.api.auth import AuthGate, get_auth_gate

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    """Request body for POST /auth/login.

    Fields are optional so a missing one is a 401, not a schema error.
    """

    email: str | None = None
    password: str | None = None


@router.post("/login")
def login(
    payload: LoginRequest | None = None,
    auth_gate: AuthGate = Depends(get_auth_gate),
) -> dict:
    """Exchange email/password for a bearer token.

    Returns:
        {"token": ..., "user": {"id": ..., "email": ...}}
    """
    payload = payload or LoginRequest()
    credential = auth_gate.login(payload.email, payload.password)
    return {
        "token": credential.token,
        "user": {"id": credential.subject_id, "email": credential.email},
    }
