"""Shared test helpers: fakes for the external collaborators.

These are NOT fixtures - they are regular classes/functions importable by
conftest.py and individual test files.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

TEST_SECRET = "test-secret-for-hs256-signing-32b"


class FakeCarrier:
    """Records sends; optionally fails them."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.fail_with = fail_with
        self.sent: list[tuple[str, str]] = []

    def send(self, to: str, body: str) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((to, body))
        return f"SM{len(self.sent):032d}"


class FakeActivityLog:
    """In-memory CRM. `fail_on` names a method that raises."""

    def __init__(self, fail_on: str | None = None, existing: dict[str, str] | None = None) -> None:
        self.fail_on = fail_on
        self.contacts: dict[str, str] = dict(existing or {})
        self.notes: list[tuple[str, str, datetime]] = []
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_on == name:
            raise RuntimeError(f"{name} exploded")

    def find_contact(self, phone: str) -> str | None:
        self._maybe_fail("find_contact")
        return self.contacts.get(phone)

    def create_contact(self, phone: str) -> str:
        self._maybe_fail("create_contact")
        with self._lock:
            contact_id = f"c{len(self.contacts) + 1}"
            self.contacts[phone] = contact_id
        return contact_id

    def create_note(self, contact_id: str, body: str, timestamp: datetime) -> str:
        self._maybe_fail("create_note")
        self.notes.append((contact_id, body, timestamp))
        return f"n{len(self.notes)}"


class BlockingActivityLog(FakeActivityLog):
    """CRM whose contact search hangs until `release` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()
        self.noted = threading.Event()

    def find_contact(self, phone: str) -> str | None:
        self.release.wait(timeout=10)
        return super().find_contact(phone)

    def create_note(self, contact_id: str, body: str, timestamp: datetime) -> str:
        note_id = super().create_note(contact_id, body, timestamp)
        self.noted.set()
        return note_id

class StepClock:
    """Deterministic clock: each call advances by `step`."""

    def __init__(
        self,
        start: datetime | None = None,
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


def login(client: TestClient, email: str = "rep@example.com", password: str = "password") -> str:
    """Log in through the API and return the bearer token."""
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
