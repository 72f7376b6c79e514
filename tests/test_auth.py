"""Tests for credential issuance and verification."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from smsgateway.api.auth import (
    AuthGate,
    Principal,
    UserDirectory,
    hash_password,
    verify_password,
)
from smsgateway.domain.errors import AuthenticationError

SECRET = "unit-test-secret"


class MovableClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return MovableClock()


@pytest.fixture
def gate(clock):
    users = UserDirectory.with_demo_user("rep@example.com", "password")
    return AuthGate(users, SECRET, ttl_hours=72, clock=clock)


class TestPasswords:
    def test_round_trip(self):
        encoded = hash_password("s3cret")
        assert verify_password("s3cret", encoded) is True
        assert verify_password("wrong", encoded) is False

    def test_salted(self):
        assert hash_password("same") != hash_password("same")


class TestLogin:
    def test_issues_credential(self, gate, clock):
        credential = gate.login("rep@example.com", "password")

        assert credential.subject_id == "u1"
        assert credential.email == "rep@example.com"
        assert credential.expires_at == clock.now + timedelta(hours=72)
        claims = jwt.decode(credential.token, SECRET, algorithms=["HS256"], options={"verify_exp": False})
        assert claims["sub"] == "u1"
        assert claims["email"] == "rep@example.com"

    def test_email_lookup_case_insensitive(self, gate):
        assert gate.login("REP@example.com", "password").subject_id == "u1"

    def test_wrong_password_and_unknown_email_look_the_same(self, gate):
        with pytest.raises(AuthenticationError) as wrong_password:
            gate.login("rep@example.com", "nope")
        with pytest.raises(AuthenticationError) as unknown_email:
            gate.login("who@example.com", "password")

        assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"

    @pytest.mark.parametrize("email,password", [(None, "password"), ("rep@example.com", None), ("", "")])
    def test_blank_input(self, gate, email, password):
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            gate.login(email, password)


class TestAuthorize:
    def test_valid_token(self, gate):
        token = gate.login("rep@example.com", "password").token
        subject = gate.authorize(token)
        assert subject.subject_id == "u1"
        assert subject.email == "rep@example.com"

    def test_expires_after_ttl(self, gate, clock):
        token = gate.login("rep@example.com", "password").token

        clock.now += timedelta(hours=71, minutes=59)
        assert gate.authorize(token).subject_id == "u1"

        clock.now += timedelta(minutes=1)
        with pytest.raises(AuthenticationError, match="Invalid token"):
            gate.authorize(token)

    def test_expired_by_wall_clock(self):
        gate = AuthGate(UserDirectory(), SECRET)
        past = int((datetime.now(timezone.utc) - timedelta(hours=1)).timestamp())
        token = jwt.encode({"sub": "u1", "exp": past}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="Invalid token"):
            gate.authorize(token)

    def test_tampered_signature(self, gate):
        token = gate.login("rep@example.com", "password").token
        forged = jwt.encode(
            jwt.decode(token, options={"verify_signature": False}),
            "another-secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError, match="Invalid token"):
            gate.authorize(forged)

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
    def test_malformed(self, gate, token):
        with pytest.raises(AuthenticationError, match="Invalid token"):
            gate.authorize(token)

    def test_missing_exp_rejected(self, gate):
        token = jwt.encode({"sub": "u1"}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="Invalid token"):
            gate.authorize(token)

    def test_missing_sub_rejected(self, gate, clock):
        exp = int((clock.now + timedelta(hours=1)).timestamp())
        token = jwt.encode({"exp": exp}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="Invalid token"):
            gate.authorize(token)

    def test_alg_none_rejected(self, gate, clock):
        exp = int((clock.now + timedelta(hours=1)).timestamp())
        token = jwt.encode({"sub": "u1", "exp": exp}, None, algorithm="none")
        with pytest.raises(AuthenticationError, match="Invalid token"):
            gate.authorize(token)


def test_directory_add_and_find():
    users = UserDirectory()
    users.add(Principal(id="u2", email="ops@example.com", password_hash=hash_password("x")))
    assert users.find_by_email("ops@example.com").id == "u2"
    assert users.find_by_email("nobody@example.com") is None
