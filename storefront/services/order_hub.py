# storefront/services/order_hub.py
import queue
import threading
from collections import defaultdict
from typing import Callable, Dict, List

from storefront.domain.schemas import Order
from storefront.utils.settings import SUBSCRIBER_BUFFER_SIZE
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

OrderCallback = Callable[[Order], None]

_STOP = object()


class _Subscription:
    """
    One observer of one order.
    Snapshots go through a bounded queue drained by a worker thread,
    so a slow callback never blocks the publisher. When the buffer is
    full the oldest snapshot is dropped.
    """

    def __init__(self, order_id: int, callback: OrderCallback, buffer_size: int):
        self.order_id = order_id
        self.callback = callback
        self._queue: queue.Queue = queue.Queue(maxsize=buffer_size)
        self._worker = threading.Thread(
            target=self._run,
            name=f"order-{order_id}-observer",
            daemon=True,
        )
        self._worker.start()

    def offer(self, order: Order):
        while True:
            try:
                self._queue.put_nowait(order)
                return
            except queue.Full:
                try:
                    dropped = self._queue.get_nowait()
                    if dropped is _STOP:
                        # closed while a publish was in flight
                        self._queue.put_nowait(_STOP)
                        return
                    logger.warning(
                        f"Observer of order {self.order_id} is slow, dropping snapshot "
                        f"with status {getattr(dropped, 'status', dropped)}"
                    )
                except queue.Empty:
                    pass

    def close(self):
        # the stop marker must get in even if the buffer is full
        self.offer(_STOP)

    def join(self, timeout: float | None = None):
        self._worker.join(timeout)

    def _run(self):
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            try:
                self.callback(item)
            except Exception as e:
                logger.error(f"Observer of order {self.order_id} failed: {e}")


class OrderChangeHub:
    """In-process publish/subscribe of order snapshots, keyed by order id."""

    def __init__(self, buffer_size: int = SUBSCRIBER_BUFFER_SIZE):
        self.buffer_size = buffer_size
        self._lock = threading.Lock()
        self._subscriptions: Dict[int, List[_Subscription]] = defaultdict(list)

    def subscribe(self, order_id: int, callback: OrderCallback) -> Callable[[], None]:
        sub = _Subscription(order_id, callback, self.buffer_size)
        with self._lock:
            self._subscriptions[order_id].append(sub)
        logger.info(f"Observer subscribed to order {order_id}")

        released = threading.Event()

        def unsubscribe():
            if released.is_set():
                return
            released.set()
            with self._lock:
                subs = self._subscriptions.get(order_id, [])
                if sub in subs:
                    subs.remove(sub)
                if not subs:
                    self._subscriptions.pop(order_id, None)
            sub.close()
            logger.info(f"Observer unsubscribed from order {order_id}")

        return unsubscribe

    def publish(self, order: Order):
        with self._lock:
            subs = list(self._subscriptions.get(order.id, []))
        for sub in subs:
            sub.offer(order)

    def subscriber_count(self, order_id: int) -> int:
        with self._lock:
            return len(self._subscriptions.get(order_id, []))
