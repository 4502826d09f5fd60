"""
Broadcast channel for deal announcements.

A BroadcastChannel fans one redacted event out to every consumer attached at
the moment of publishing. There is no replay: a consumer attaching later only
sees events published after it attached.

publish() is synchronous and must not wait on consumers.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List

from domain.deal import DealAnnouncement

NEW_DEAL_EVENT = "new-deal"


@dataclass(frozen=True, slots=True)
class BroadcastEvent:
    """Typed envelope sent to consumers."""

    event_type: str
    announcement: DealAnnouncement

    def to_message(self) -> Dict[str, Any]:
        return {"type": self.event_type, "data": self.announcement.to_payload()}


def new_deal_event(announcement: DealAnnouncement) -> BroadcastEvent:
    return BroadcastEvent(event_type=NEW_DEAL_EVENT, announcement=announcement)


class BroadcastChannel(ABC):
    """One-to-many real-time emitter."""

    @abstractmethod
    def publish(self, event: BroadcastEvent) -> int:
        """
        Deliver event to every currently-attached consumer.

        Returns:
            Number of consumers the event was handed to
        """


class RecordingBroadcastChannel(BroadcastChannel):
    """In-process channel that keeps every published event."""

    def __init__(self) -> None:
        self._events: List[BroadcastEvent] = []
        self._lock = threading.Lock()

    @property
    def events(self) -> List[BroadcastEvent]:
        with self._lock:
            return list(self._events)

    def publish(self, event: BroadcastEvent) -> int:
        with self._lock:
            self._events.append(event)
        return 1


__all__ = [
    "NEW_DEAL_EVENT",
    "BroadcastEvent",
    "BroadcastChannel",
    "RecordingBroadcastChannel",
    "new_deal_event",
]
