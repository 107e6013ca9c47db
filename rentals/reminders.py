"""Repeating "pending payments" reminder, rescheduled whenever the unpaid count changes."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Optional

from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

REMINDER_ID = "hourly_payment_reminder"
REMINDER_INTERVAL_SECONDS = 3600.0
REMINDER_TITLE = "Pagos pendientes"


@dataclass(frozen=True)
class Reminder:
    id: str
    title: str
    body: str


def reminder_body(pending: int) -> str:
    noun = "pago" if pending == 1 else "pagos"
    return f"Tienes {pending} {noun} de alquiler pendientes."


def _log_notifier(reminder: Reminder) -> None:
    logger.info("payment_reminder", extra={"reminder_id": reminder.id, "title": reminder.title, "body": reminder.body})


class PaymentReminderScheduler:
    """At most one reminder is pending at a time; each update replaces the previous one."""

    def __init__(
        self,
        notifier: Optional[Callable[[Reminder], None]] = None,
        *,
        interval: float = REMINDER_INTERVAL_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self.notifier = notifier or _log_notifier
        self.interval = interval
        self._timer_factory = timer_factory
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self.current: Optional[Reminder] = None

    @property
    def active(self) -> bool:
        return self.current is not None

    def _arm(self, reminder: Reminder) -> None:
        timer = self._timer_factory(self.interval, self._fire, args=(reminder,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _fire(self, reminder: Reminder) -> None:
        with self._lock:
            if self.current is not reminder:
                return
            self._arm(reminder)
        try:
            self.notifier(reminder)
        except Exception as exc:
            logger.warning("payment_reminder_failed", extra={"error": str(exc)[:200]})

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self.current = None

    def update_payment_reminders(self, pending_count: int) -> None:
        self.cancel()
        if pending_count <= 0:
            logger.info("payment_reminder_cleared")
            return
        reminder = Reminder(id=REMINDER_ID, title=REMINDER_TITLE, body=reminder_body(pending_count))
        with self._lock:
            self.current = reminder
            self._arm(reminder)
        logger.info("payment_reminder_scheduled", extra={"pending": pending_count, "interval": self.interval})
