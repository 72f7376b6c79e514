"""Best-effort mirror of messages into the CRM activity log.

Isolation boundary: record() hands the event to a detached task and returns.
Nothing the CRM does (errors, timeouts, malformed answers) can reach the
caller, and an unconfigured CRM costs a single None check.

Protocol per event: find contact by phone -> create it if absent -> add a
note. The first failing step aborts the rest for that event. There is no
retry, so sync is at-most-once and lossy by contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from smsgateway.domain.errors import SyncFailure
from smsgateway.domain.messages import Direction
from smsgateway.observability.logging import get_logger
from smsgateway.observability.redaction import hash_identifier, safe_log_context
from smsgateway.tasks.client import TasksClient

logger = get_logger(__name__)


class ActivityLog(Protocol):
    """External CRM-like system holding contacts and timestamped notes."""

    def find_contact(self, phone: str) -> str | None:
        ...

    def create_contact(self, phone: str) -> str:
        ...

    def create_note(self, contact_id: str, body: str, timestamp: datetime) -> str:
        ...


@dataclass(frozen=True)
class ActivityEvent:
    direction: Direction
    counterparty: str
    body: str
    timestamp: datetime


def format_note(event: ActivityEvent) -> str:
    """Note text: who the SMS was from/to, a blank line, then the body."""
    preposition = "from" if event.direction is Direction.INBOUND else "to"
    return f"SMS {preposition} {event.counterparty}\n\n{event.body}"


class ActivitySync:
    """Fire-and-forget CRM sync.

    Args:
        activity_log: CRM collaborator, or None when not configured.
        tasks_client: Dispatcher that runs the sync detached from the caller.
    """

    def __init__(self, activity_log: ActivityLog | None, tasks_client: TasksClient) -> None:
        self._activity_log = activity_log
        self._tasks_client = tasks_client

    @property
    def enabled(self) -> bool:
        return self._activity_log is not None

    def record(self, event: ActivityEvent) -> None:
        """Schedule the sync of one event. Never raises, never blocks on I/O."""
        if self._activity_log is None:
            return
        try:
            self._tasks_client.spawn("activity_sync", self._sync, event)
        except Exception:
            logger.exception("activity sync dispatch failed")

    def _sync(self, event: ActivityEvent) -> None:
        try:
            self._run_steps(event)
        except SyncFailure as failure:
            logger.error(
                "activity sync aborted",
                extra={
                    "extra_fields": safe_log_context(
                        step=failure.step,
                        error_type=type(failure.cause).__name__,
                        direction=event.direction.value,
                        phone_hash=hash_identifier(event.counterparty),
                    )
                },
            )
        except Exception:
            logger.exception("activity sync crashed")

    def _run_steps(self, event: ActivityEvent) -> None:
        log = self._activity_log
        phone = event.counterparty

        try:
            contact_id = log.find_contact(phone)
        except Exception as e:
            raise SyncFailure("search_contact", e) from e

        if not contact_id:
            try:
                contact_id = log.create_contact(phone)
            except Exception as e:
                raise SyncFailure("create_contact", e) from e

        try:
            log.create_note(contact_id, format_note(event), event.timestamp)
        except Exception as e:
            raise SyncFailure("create_note", e) from e

        logger.info(
            "activity synced",
            extra={
                "extra_fields": safe_log_context(
                    direction=event.direction.value,
                    phone_hash=hash_identifier(phone),
                )
            },
        )
