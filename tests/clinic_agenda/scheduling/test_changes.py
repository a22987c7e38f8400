from clinic_agenda.scheduling.changes import CREATED, AppointmentChangeFeed, ChangeEvent


def test_subscribers_receive_events_until_unsubscribed() -> None:
    feed = AppointmentChangeFeed()
    received = []
    unsubscribe = feed.subscribe(received.append)

    feed.publish(ChangeEvent('clinic-a', 1, CREATED))
    unsubscribe()
    feed.publish(ChangeEvent('clinic-a', 2, CREATED))

    assert received == [ChangeEvent('clinic-a', 1, CREATED)]


def test_clinic_scoped_subscription_ignores_other_clinics() -> None:
    feed = AppointmentChangeFeed()
    received = []
    feed.subscribe(received.append, clinic_id='clinic-a')

    feed.publish(ChangeEvent('clinic-b', 1, CREATED))
    feed.publish(ChangeEvent('clinic-a', 2, CREATED))

    assert [event.appointment_id for event in received] == [2]


def test_failing_subscriber_does_not_block_others() -> None:
    feed = AppointmentChangeFeed()
    received = []

    def broken(_event):
        raise RuntimeError('refetch failed')

    feed.subscribe(broken)
    feed.subscribe(received.append)
    feed.publish(ChangeEvent('clinic-a', 1, CREATED))

    assert len(received) == 1
