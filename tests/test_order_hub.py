import threading

from storefront.domain.status import OrderStatus
from storefront.services.order_hub import OrderChangeHub


def _snapshots(order):
    return [order.model_copy(update={"status": s}) for s in OrderStatus]


def test_slow_observer_keeps_the_newest_snapshots(place_order):
    hub = OrderChangeHub(buffer_size=2)
    first, *rest = _snapshots(place_order())
    received = []
    busy = threading.Event()
    go_on = threading.Event()
    done = threading.Event()

    def slow(snapshot):
        busy.set()
        go_on.wait(5)
        received.append(snapshot.status)
        if len(received) == 3:
            done.set()

    hub.subscribe(first.id, slow)
    hub.publish(first)
    assert busy.wait(5)

    # observer is stuck, publisher must not be
    for snapshot in rest:
        hub.publish(snapshot)
    go_on.set()

    assert done.wait(5)
    assert received == [first.status, rest[-2].status, rest[-1].status]


def test_failing_observer_keeps_receiving(place_order):
    hub = OrderChangeHub()
    snapshots = _snapshots(place_order())
    received = []
    done = threading.Event()

    def flaky(snapshot):
        received.append(snapshot.status)
        if len(received) == 1:
            raise RuntimeError("boom")
        done.set()

    hub.subscribe(snapshots[0].id, flaky)
    hub.publish(snapshots[0])
    hub.publish(snapshots[1])

    assert done.wait(5)
    assert received == [snapshots[0].status, snapshots[1].status]


def test_observers_only_see_their_order(place_order):
    hub = OrderChangeHub()
    mine, other = place_order(), place_order()
    received = []
    done = threading.Event()

    def on_change(snapshot):
        received.append(snapshot.id)
        done.set()

    hub.subscribe(mine.id, on_change)
    hub.publish(other)
    hub.publish(mine)

    assert done.wait(5)
    assert received == [mine.id]


def test_unsubscribe_is_idempotent(place_order):
    hub = OrderChangeHub()
    order = place_order()
    first = hub.subscribe(order.id, lambda o: None)
    second = hub.subscribe(order.id, lambda o: None)
    assert hub.subscriber_count(order.id) == 2

    first()
    first()
    assert hub.subscriber_count(order.id) == 1

    second()
    assert hub.subscriber_count(order.id) == 0
    hub.publish(order)
