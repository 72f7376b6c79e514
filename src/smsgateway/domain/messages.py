"""Message and conversation summary types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class Direction(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


@dataclass(frozen=True)
class MessageDraft:
    """A message before the store assigns its id and timestamp."""

    identity: str
    direction: Direction
    body: str


@dataclass(frozen=True)
class Message:
    """Immutable entry of the append-only message log."""

    id: str
    identity: str
    direction: Direction
    body: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customer_phone": self.identity,
            "direction": self.direction.value,
            "body": self.body,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class ConversationSummary:
    """Derived view: one per identity, tracking its latest message time."""

    identity: str
    last_message_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "customer_phone": self.identity,
            "last_at": self.last_message_at.isoformat(),
        }
