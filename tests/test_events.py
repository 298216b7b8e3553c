from spirewatch.core.events import EventBus


def test_event_bus_invokes_subscribers():
    bus = EventBus()
    received = []
    bus.subscribe("topic", lambda payload: received.append(payload))
    bus.emit("topic", 42)
    assert received == [42]


def test_subscribe_returns_unsubscriber():
    bus = EventBus()
    received = []
    remove = bus.subscribe("topic", received.append)
    bus.subscribe("topic", received.append)
    bus.emit("topic", 1)
    remove()
    bus.emit("topic", 2)
    assert received == [1]
