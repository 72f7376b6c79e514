"""Conversation store: append-only message log plus derived summaries.

Callers depend on the ConversationStore protocol only. The in-memory
implementation below is the reference store; a database-backed one can
replace it without touching the gateway or the routes.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime
from typing import Protocol

from smsgateway.domain.messages import ConversationSummary, Message, MessageDraft
from smsgateway.infra.time import Clock, utc_now


class ConversationStore(Protocol):
    """Storage contract for messages and conversation summaries."""

    def append(self, draft: MessageDraft) -> Message:
        """Persist a message, assigning its id and creation timestamp."""
        ...

    def list_conversations(self) -> list[ConversationSummary]:
        """One summary per identity, most recently active first."""
        ...

    def list_messages(self, identity: str | None) -> list[Message]:
        """All messages for an identity, oldest first."""
        ...


class InMemoryConversationStore:
    """Volatile ConversationStore guarded by a single lock.

    Invariants:
    - created_at never decreases across appends, so log order is time order
      and equal timestamps keep append order.
    - The summary map is updated inside the same critical section as the
      log, so reads never see a stale summary.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or utc_now
        self._lock = threading.Lock()
        self._log: list[Message] = []
        self._by_identity: dict[str, list[Message]] = {}
        # identity -> (last_message_at, sequence of that append)
        self._summaries: dict[str, tuple[datetime, int]] = {}
        self._last_assigned: datetime | None = None

    def append(self, draft: MessageDraft) -> Message:
        with self._lock:
            created_at = self._clock()
            if self._last_assigned is not None and created_at < self._last_assigned:
                created_at = self._last_assigned
            self._last_assigned = created_at

            message = Message(
                id=str(uuid.uuid4()),
                identity=draft.identity,
                direction=draft.direction,
                body=draft.body,
                created_at=created_at,
            )
            seq = len(self._log)
            self._log.append(message)
            self._by_identity.setdefault(message.identity, []).append(message)
            self._summaries[message.identity] = (created_at, seq)
            return message

    def list_conversations(self) -> list[ConversationSummary]:
        with self._lock:
            ordered = sorted(
                self._summaries.items(),
                key=lambda item: item[1],
                reverse=True,
            )
            return [
                ConversationSummary(identity=identity, last_message_at=last_at)
                for identity, (last_at, _seq) in ordered
            ]

    def list_messages(self, identity: str | None) -> list[Message]:
        if not identity:
            return []
        with self._lock:
            return list(self._by_identity.get(identity, ()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._log)
