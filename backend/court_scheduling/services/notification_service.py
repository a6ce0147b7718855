"""
services/notification_service.py

In-process publisher for scheduling events.

Delivery (email, SMS, push) is someone else's job: subscribers registered
here hand events over to it. Events are emitted after the scheduling
transaction has committed and a failing subscriber never affects the
caller: emit() logs and moves on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Union
from uuid import UUID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleAllocated:
    case_id: UUID
    case_number: str
    hearing_date: date
    start_time: str
    end_time: str
    courtroom: str


@dataclass(frozen=True)
class AdjournmentResolved:
    case_id: UUID
    adjournment_request_id: UUID
    accepted: bool
    new_date: Optional[date] = None
    new_start_time: Optional[str] = None
    new_end_time: Optional[str] = None


SchedulingEvent = Union[ScheduleAllocated, AdjournmentResolved]
Subscriber = Callable[[SchedulingEvent], None]


class NotificationPublisher:
    def __init__(self):
        self._subscribers: list[Subscriber] = []

    def subscribe(self, handler: Subscriber) -> None:
        if handler not in self._subscribers:
            self._subscribers.append(handler)

    def unsubscribe(self, handler: Subscriber) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def emit(self, event: SchedulingEvent) -> None:
        """Fire-and-forget: never raises."""
        logger.info("Scheduling event: %s", event)
        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception as e:
                logger.warning(
                    "Notification handler %s failed (non-blocking): %s",
                    getattr(handler, "__name__", handler), e,
                )


notification_publisher = NotificationPublisher()
