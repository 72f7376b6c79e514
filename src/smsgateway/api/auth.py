"""Bearer credential issuance and verification.

Provides:
- AuthGate.login(): checks a principal's password and issues an HS256 JWT
- AuthGate.authorize(): validates a JWT and returns the subject context
- get_current_subject(): FastAPI dependency for authenticated routes

Every failure is reported with one constant message per operation, so a
caller cannot tell a wrong email from a wrong password, or an expired token
from a tampered one.
"""

from __future__ import annotations

import hashlib
import hmac
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import jwt
from fastapi import Request

from smsgateway.domain.errors import AuthenticationError
from smsgateway.infra.time import Clock, utc_now
from smsgateway.observability.logging import get_logger
from smsgateway.observability.redaction import safe_log_context

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"
INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Invalid token"

_PBKDF2_ITERATIONS = 100_000


def hash_password(password: str, salt: bytes | None = None) -> str:
    """PBKDF2-SHA256 hash encoded as "<salt hex>$<digest hex>"."""
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, _PBKDF2_ITERATIONS)
    return f"{salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    salt_hex, _, digest_hex = encoded.partition("$")
    candidate = hash_password(password, bytes.fromhex(salt_hex))
    return hmac.compare_digest(candidate.partition("$")[2], digest_hex)


@dataclass(frozen=True)
class Principal:
    id: str
    email: str
    password_hash: str = field(repr=False)


@dataclass(frozen=True)
class Credential:
    """Issued bearer credential. Valid until expires_at, never renewed."""

    token: str
    subject_id: str
    email: str
    expires_at: datetime


@dataclass(frozen=True)
class SubjectContext:
    """Authenticated caller, as carried by a valid token."""

    subject_id: str
    email: str | None


class UserDirectory:
    """In-memory principal lookup by email."""

    def __init__(self, principals: list[Principal] | None = None) -> None:
        self._lock = threading.Lock()
        self._by_email: dict[str, Principal] = {}
        for principal in principals or []:
            self.add(principal)

    @classmethod
    def with_demo_user(cls, email: str, password: str) -> "UserDirectory":
        return cls([Principal(id="u1", email=email, password_hash=hash_password(password))])

    def add(self, principal: Principal) -> None:
        with self._lock:
            self._by_email[principal.email.lower()] = principal

    def find_by_email(self, email: str) -> Principal | None:
        with self._lock:
            return self._by_email.get(email.lower())


# Dummy hash so unknown emails cost the same PBKDF2 round as known ones
_DUMMY_HASH = hash_password("not-a-real-password")


class AuthGate:
    """Issues and validates time-limited bearer credentials.

    Args:
        users: Principal directory.
        secret: HMAC signing secret.
        ttl_hours: Credential lifetime.
        clock: Time source (injected in tests).
    """

    def __init__(
        self,
        users: UserDirectory,
        secret: str,
        ttl_hours: int = 72,
        clock: Clock | None = None,
    ) -> None:
        self._users = users
        self._secret = secret
        self._ttl = timedelta(hours=ttl_hours)
        self._clock = clock or utc_now

    def login(self, email: str | None, password: str | None) -> Credential:
        """Exchange email/password for a credential.

        Raises:
            AuthenticationError: Unknown email, wrong password or blank input.
        """
        principal = self._users.find_by_email(email) if email else None
        stored_hash = principal.password_hash if principal else _DUMMY_HASH
        password_ok = verify_password(password or "", stored_hash)

        if principal is None or not password or not password_ok:
            logger.info("login rejected")
            raise AuthenticationError(INVALID_CREDENTIALS)

        issued_at = self._clock()
        expires_at = issued_at + self._ttl
        token = jwt.encode(
            {
                "sub": principal.id,
                "email": principal.email,
                "iat": int(issued_at.timestamp()),
                "exp": int(expires_at.timestamp()),
            },
            self._secret,
            algorithm=JWT_ALGORITHM,
        )
        logger.info(
            "credential issued",
            extra={"extra_fields": safe_log_context(subject_id=principal.id)},
        )
        return Credential(
            token=token,
            subject_id=principal.id,
            email=principal.email,
            expires_at=expires_at,
        )

    def authorize(self, token: str | None) -> SubjectContext:
        """Validate a bearer token.

        Raises:
            AuthenticationError: Token missing, malformed, tampered or expired.
        """
        if not token:
            raise AuthenticationError(INVALID_TOKEN)

        now = int(self._clock().timestamp())
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "sub"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError:
            raise AuthenticationError(INVALID_TOKEN)

        # Expiry checked against our clock so tests can move time
        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or exp <= now:
            raise AuthenticationError(INVALID_TOKEN)

        sub = payload.get("sub")
        if not sub:
            raise AuthenticationError(INVALID_TOKEN)

        return SubjectContext(subject_id=str(sub), email=payload.get("email"))


def _extract_bearer_token(request: Request) -> str:
    """Extract Bearer token from Authorization header.

    Raises:
        AuthenticationError: Header missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise AuthenticationError(INVALID_TOKEN)

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError(INVALID_TOKEN)

    return parts[1]


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.auth_gate


def get_current_subject(request: Request) -> SubjectContext:
    """FastAPI dependency: authenticated subject for the request."""
    token = _extract_bearer_token(request)
    return get_auth_gate(request).authorize(token)

