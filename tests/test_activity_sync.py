"""Tests for best-effort CRM activity sync."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from helpers import FakeActivityLog

from smsgateway.domain.messages import Direction
from smsgateway.sync.activity_sync import ActivityEvent, ActivitySync, format_note
from smsgateway.tasks.client import TasksClient

PHONE = "+15551234567"
TS = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _event(direction: Direction = Direction.INBOUND, body: str = "hi") -> ActivityEvent:
    return ActivityEvent(direction=direction, counterparty=PHONE, body=body, timestamp=TS)


def _sync(log) -> ActivitySync:
    return ActivitySync(log, TasksClient(backend="inline"))


class TestProtocol:
    def test_creates_contact_when_absent(self):
        log = FakeActivityLog()
        _sync(log).record(_event())

        assert log.calls == ["find_contact", "create_contact", "create_note"]
        assert log.contacts == {PHONE: "c1"}
        assert log.notes == [("c1", f"SMS from {PHONE}\n\nhi", TS)]

    def test_reuses_existing_contact(self):
        log = FakeActivityLog(existing={PHONE: "c42"})
        _sync(log).record(_event(Direction.OUTBOUND, "yo"))

        assert log.calls == ["find_contact", "create_note"]
        assert log.notes == [("c42", f"SMS to {PHONE}\n\nyo", TS)]


class TestFailureIsolation:
    def test_search_failure_aborts_remaining_steps(self):
        log = FakeActivityLog(fail_on="find_contact")
        _sync(log).record(_event())

        assert log.calls == ["find_contact"]
        assert log.notes == []

    def test_create_failure_skips_note(self):
        log = FakeActivityLog(fail_on="create_contact")
        _sync(log).record(_event())

        assert log.calls == ["find_contact", "create_contact"]
        assert log.notes == []

    def test_note_failure_does_not_raise(self):
        log = FakeActivityLog(fail_on="create_note")
        _sync(log).record(_event())
        assert log.calls[-1] == "create_note"

    def test_dispatch_failure_does_not_raise(self):
        tasks = MagicMock()
        tasks.spawn.side_effect = RuntimeError("pool gone")
        ActivitySync(FakeActivityLog(), tasks).record(_event())

    def test_each_event_independent(self):
        log = FakeActivityLog(fail_on="create_contact")
        sync = _sync(log)
        sync.record(_event())
        log.fail_on = None
        sync.record(_event())

        assert len(log.notes) == 1


class TestUnconfigured:
    def test_record_is_noop_without_activity_log(self):
        tasks = MagicMock()
        sync = ActivitySync(None, tasks)

        sync.record(_event())

        assert sync.enabled is False
        tasks.spawn.assert_not_called()


def test_format_note():
    assert format_note(_event(Direction.INBOUND, "a")) == f"SMS from {PHONE}\n\na"
    assert format_note(_event(Direction.OUTBOUND, "b")) == f"SMS to {PHONE}\n\nb"
