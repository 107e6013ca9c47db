import pytest

from rentals.reminders import REMINDER_ID, PaymentReminderScheduler, reminder_body


class FakeTimer:
    created = []

    def __init__(self, interval, function, args=()):
        self.interval = interval
        self.function = function
        self.args = args
        self.started = False
        self.cancelled = False
        self.daemon = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function(*self.args)


@pytest.fixture(autouse=True)
def reset_timers():
    FakeTimer.created = []
    yield


@pytest.fixture()
def delivered():
    return []


@pytest.fixture()
def scheduler(delivered):
    return PaymentReminderScheduler(delivered.append, timer_factory=FakeTimer)


@pytest.mark.parametrize(
    "pending, body",
    [
        (1, "Tienes 1 pago de alquiler pendientes."),
        (2, "Tienes 2 pagos de alquiler pendientes."),
        (3, "Tienes 3 pagos de alquiler pendientes."),
    ],
)
def test_reminder_body_pluralises_payments(pending, body):
    assert reminder_body(pending) == body


def test_schedules_hourly_reminder(scheduler, delivered):
    scheduler.update_payment_reminders(2)
    [timer] = FakeTimer.created
    assert timer.interval == 3600
    assert timer.started and timer.daemon

    timer.fire()
    [reminder] = delivered
    assert reminder.id == REMINDER_ID
    assert reminder.title == "Pagos pendientes"
    assert reminder.body == "Tienes 2 pagos de alquiler pendientes."
    # Firing re-arms the next occurrence.
    assert len(FakeTimer.created) == 2
    assert FakeTimer.created[1].started


def test_update_replaces_existing_reminder(scheduler, delivered):
    scheduler.update_payment_reminders(2)
    first = FakeTimer.created[0]
    scheduler.update_payment_reminders(1)
    assert first.cancelled
    first.fire()
    assert delivered == []
    FakeTimer.created[1].fire()
    assert delivered[0].body == "Tienes 1 pago de alquiler pendientes."


def test_zero_pending_cancels(scheduler):
    scheduler.update_payment_reminders(4)
    scheduler.update_payment_reminders(0)
    assert FakeTimer.created[0].cancelled
    assert len(FakeTimer.created) == 1
    assert not scheduler.active


def test_notifier_errors_are_logged(caplog):
    def boom(reminder):
        raise RuntimeError("no display")

    scheduler = PaymentReminderScheduler(boom, timer_factory=FakeTimer)
    scheduler.update_payment_reminders(1)
    with caplog.at_level("WARNING"):
        FakeTimer.created[0].fire()
    assert any(r.getMessage() == "payment_reminder_failed" for r in caplog.records)
    scheduler.cancel()
