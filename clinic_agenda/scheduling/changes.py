"""
Appointment Change Feed

Subscribers register a callback and receive a ChangeEvent after each
committed create or update, so they can invalidate and refetch their
snapshot. Delivery is synchronous and in-process.
"""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

CREATED = 'created'
UPDATED = 'updated'


@dataclass(frozen=True)
class ChangeEvent:
    clinic_id: str
    appointment_id: Any
    kind: str


class AppointmentChangeFeed:
    def __init__(self):
        self._subscribers: list[tuple[Optional[str], Callable[[ChangeEvent], None]]] = []
        self._lock = Lock()

    def subscribe(
        self,
        callback: Callable[[ChangeEvent], None],
        clinic_id: Optional[str] = None,
    ) -> Callable[[], None]:
        """Register ``callback``; pass ``clinic_id`` to only hear about one clinic."""
        entry = (clinic_id, callback)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for clinic_id, callback in subscribers:
            if clinic_id is not None and clinic_id != event.clinic_id:
                continue
            try:
                callback(event)
            except Exception:
                logger.exception('Appointment change subscriber failed for %s.', event)


change_feed = AppointmentChangeFeed()
