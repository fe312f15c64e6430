from services.events import EventPublisher, UserCreatedEvent, get_event_publisher, log_user_created


class OtherEvent(UserCreatedEvent):
    pass


def failing_handler(event):
    raise RuntimeError("listener down")


def test_publish_reaches_every_subscriber():
    publisher = EventPublisher()
    first, second = [], []
    publisher.subscribe(UserCreatedEvent, first.append)
    publisher.subscribe(UserCreatedEvent, second.append)
    event = UserCreatedEvent(username="dave", email="dave@example.com")

    assert publisher.publish(event) == 2
    assert first == [event]
    assert second == [event]


def test_failing_handler_does_not_stop_delivery():
    publisher = EventPublisher()
    received = []
    publisher.subscribe(UserCreatedEvent, failing_handler)
    publisher.subscribe(UserCreatedEvent, received.append)

    delivered = publisher.publish(UserCreatedEvent(username="dave"))

    assert delivered == 1
    assert len(received) == 1


def test_handlers_are_matched_by_exact_type():
    publisher = EventPublisher()
    received = []
    publisher.subscribe(UserCreatedEvent, received.append)

    assert publisher.publish(OtherEvent(username="dave")) == 0
    assert received == []


def test_event_without_subscribers():
    assert EventPublisher().publish(UserCreatedEvent(username="dave")) == 0


def test_shared_publisher_logs_new_users():
    publisher = get_event_publisher()

    assert publisher is get_event_publisher()
    assert log_user_created in publisher._handlers[UserCreatedEvent]
