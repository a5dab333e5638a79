"""
Purpose: Lifecycle events for the notification collaborator.
What it does:
Builds JobEvent records (requested, assigned, started, completed, cancelled)
and hands them to whatever notifier was injected. Delivery is the
notifier's problem: a failing notifier is logged and never rolls back the
state change that produced the event.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class JobEventType(str, Enum):
    REQUESTED = "job.requested"
    ASSIGNED = "job.assigned"
    STARTED = "job.started"
    COMPLETED = "job.completed"
    CANCELLED = "job.cancelled"


@dataclass(frozen=True)
class JobEvent:
    type: JobEventType
    job_id: str
    occurred_at: datetime
    worker_id: Optional[str] = None
    detail: Dict[str, Any] = field(default_factory=dict)


class Notifier(Protocol):
    def publish(self, event: JobEvent) -> None:
        ...


class EventPublisher:
    """
    Null-safe wrapper around an optional notifier.
    """
    def __init__(self, notifier: Optional[Notifier] = None):
        self.notifier = notifier

    def publish(self, event: JobEvent) -> None:
        if not self.notifier:
            return
        try:
            self.notifier.publish(event)
        except Exception:
            logger.exception("Notifier failed to publish %s for job %s", event.type.value, event.job_id)


class InMemoryNotifier:
    """
    Keeps every event it receives. Used by simulations and tests.
    """
    def __init__(self):
        self._events: List[JobEvent] = []
        self._lock = threading.Lock()

    def publish(self, event: JobEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[JobEvent]:
        with self._lock:
            return list(self._events)

    def types_for(self, job_id: str) -> List[JobEventType]:
        return [event.type for event in self.events if event.job_id == job_id]
